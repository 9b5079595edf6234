"""
    Classifieds Admin Stack - AWS CDK Infrastructure
"""

import json
from typing import Any, Dict, List

from aws_cdk import Tags
import aws_cdk.aws_ecr_assets as ecr_assets

from constructs import Construct
from aws_cdk import (
    Stack,
    Duration,
    CfnOutput,
    RemovalPolicy,
    CustomResource,
    aws_lambda as _lambda,
    aws_apigatewayv2 as apigwv2,
    aws_apigatewayv2_integrations as integrations,
    aws_dynamodb as dynamodb,
    aws_iam as iam,
    aws_logs as logs,
    aws_s3 as s3,
    aws_cloudwatch as cloudwatch,
    aws_secretsmanager as secretsmanager
)


TAXONOMY_ROUTES = [
    ("/categories", [apigwv2.HttpMethod.GET, apigwv2.HttpMethod.POST]),
    ("/categories/move", [apigwv2.HttpMethod.POST]),
    ("/categories/{categoryId}", [apigwv2.HttpMethod.DELETE]),
    ("/categories/{categoryId}/subcategories", [apigwv2.HttpMethod.POST]),
    ("/categories/{categoryId}/subcategories/{subcategoryId}", [apigwv2.HttpMethod.DELETE]),
    ("/locations", [apigwv2.HttpMethod.GET, apigwv2.HttpMethod.POST]),
    ("/locations/{countryId}", [apigwv2.HttpMethod.DELETE]),
    ("/locations/{countryId}/governorates", [apigwv2.HttpMethod.POST]),
    ("/locations/{countryId}/governorates/{governorateId}", [apigwv2.HttpMethod.DELETE]),
    ("/locations/{countryId}/governorates/{governorateId}/districts", [apigwv2.HttpMethod.POST]),
    ("/locations/{countryId}/governorates/{governorateId}/districts/{districtId}", [apigwv2.HttpMethod.DELETE]),
]

LISTING_ROUTES = [
    ("/listings", [apigwv2.HttpMethod.GET]),
    ("/listings/{listingId}", [apigwv2.HttpMethod.DELETE]),
    ("/listings/{listingId}/status", [apigwv2.HttpMethod.PATCH]),
]

SITE_ADMIN_ROUTES = [
    ("/users", [apigwv2.HttpMethod.GET]),
    ("/users/{userId}", [apigwv2.HttpMethod.DELETE]),
    ("/users/{userId}/admin", [apigwv2.HttpMethod.PATCH]),
    ("/dashboard/stats", [apigwv2.HttpMethod.GET]),
    ("/settings/hero", [apigwv2.HttpMethod.GET]),
    ("/settings/hero/images", [apigwv2.HttpMethod.POST]),
    ("/settings/hero/images/{imageId}", [apigwv2.HttpMethod.DELETE]),
]

AI_ROUTES = [
    ("/ai/analyze-listing-image", [apigwv2.HttpMethod.POST]),
    ("/ai/listing-recommendations", [apigwv2.HttpMethod.POST]),
]

COLLECTIONS = ("categories", "locations", "listings", "users", "settings")

ACCESS_LOG_FORMAT = {
    "requestId": "$context.requestId",
    "status": "$context.status",
    "routeKey": "$context.routeKey",
    "stage": "$context.stage",
    "integrationErrorMessage": "$context.integration.error",
}


class ClassifiedsAdminStack(Stack):
    """Admin backend: taxonomy, moderation, site admin and AI flow functions behind one HTTP API"""

    def __init__(self, scope: Construct, construct_id: str, stage: str = "dev", **kwargs: Any) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.stage = stage
        self.is_production = stage == "prod"

        print(f"🏗️  Building {construct_id} for stage: {stage}")

        app_secret = secretsmanager.Secret.from_secret_name_v2(
            self, "AppSecret",
            secret_name=f"classifieds-admin-{self.stage}"
        )

        main_log_group = self._create_main_log_group()
        self.lambda_image = self._create_lambda_image()

        tables = self._create_tables()
        images_bucket = self._create_images_bucket()
        environment = self._common_environment(tables, images_bucket)

        # Guard queries read listings
        taxonomy_role = self._create_lambda_role("Taxonomy", "taxonomy")
        for collection in ("categories", "locations"):
            tables[collection].grant_read_write_data(taxonomy_role)
        tables["listings"].grant_read_data(taxonomy_role)

        listings_role = self._create_lambda_role("Listings", "listings")
        tables["listings"].grant_read_write_data(listings_role)
        images_bucket.grant_read_write(listings_role)

        site_admin_role = self._create_lambda_role("SiteAdmin", "site-admin")
        for collection in ("users", "settings"):
            tables[collection].grant_read_write_data(site_admin_role)
        tables["listings"].grant_read_data(site_admin_role)

        ai_role = self._create_lambda_role("AiFlows", "ai-flows")
        ai_role.add_to_policy(iam.PolicyStatement(actions=["bedrock:InvokeModel"], resources=["*"]))
        app_secret.grant_read(ai_role)

        taxonomy_lambda = self._create_function(
            "TaxonomyHandler", "taxonomy", "taxonomy_handler.lambda_handler", taxonomy_role,
            environment, main_log_group, Duration.seconds(30), 512,
            f"Taxonomy Lambda - Categories and locations admin ({self.stage})"
        )
        listings_lambda = self._create_function(
            "ListingsHandler", "listings", "listings_handler.lambda_handler", listings_role,
            environment, main_log_group, Duration.seconds(30), 512,
            f"Listings Lambda - Listing moderation ({self.stage})"
        )
        site_admin_lambda = self._create_function(
            "SiteAdminHandler", "site-admin", "site_admin_handler.lambda_handler", site_admin_role,
            environment, main_log_group, Duration.seconds(30), 512,
            f"Site Admin Lambda - Users, dashboard and hero banner ({self.stage})"
        )
        ai_lambda = self._create_function(
            "AiFlowsHandler", "ai-flows", "ai_flows_handler.lambda_handler", ai_role,
            environment, main_log_group, Duration.seconds(60), 1024,
            f"AI Flows Lambda - Image analysis and recommendations ({self.stage})"
        )

        self._create_taxonomy_seed(tables, environment, main_log_group)

        api_gateway = self._create_api_gateway(
            taxonomy_lambda, listings_lambda, site_admin_lambda, ai_lambda, main_log_group
        )
        self._create_monitoring([taxonomy_lambda, listings_lambda, site_admin_lambda, ai_lambda])
        self._create_outputs(api_gateway, tables, images_bucket, main_log_group)

    def _tag(self, construct: Construct, resource_type: str, component: str, **extra: str) -> None:
        tags = Tags.of(construct)
        tags.add("ResourceType", resource_type)
        tags.add("Component", component)
        for key, value in extra.items():
            tags.add(key, value)

    def _removal_policy(self) -> RemovalPolicy:
        return RemovalPolicy.RETAIN if self.is_production else RemovalPolicy.DESTROY

    def _create_lambda_image(self) -> ecr_assets.DockerImageAsset:
        """One container image, every function picks its handler through CMD"""
        docker_image = ecr_assets.DockerImageAsset(
            self, "ClassifiedsAdminLambdaImage",
            directory="lambda",
            asset_name=f"classifieds-admin-lambda-{self.stage}"
        )
        self._tag(docker_image, "DockerImage", "LambdaRuntime")
        return docker_image

    def _create_main_log_group(self) -> logs.LogGroup:
        log_group = logs.LogGroup(
            self, "ClassifiedsAdminLogGroup",
            log_group_name=f"/aws/classifieds-admin/{self.stage}/all-logs",
            retention=logs.RetentionDays.ONE_MONTH if self.is_production else logs.RetentionDays.ONE_WEEK,
            removal_policy=RemovalPolicy.DESTROY
        )
        self._tag(log_group, "LogGroup", "Logging")
        return log_group

    def _create_tables(self) -> Dict[str, dynamodb.Table]:
        """One DynamoDB table per document collection, keyed by `id`"""
        tables = {}

        for collection in COLLECTIONS:
            table = dynamodb.Table(
                self, f"{collection.capitalize()}Table",
                table_name=f"classifieds-{self.stage}-{collection}",
                partition_key=dynamodb.Attribute(name="id", type=dynamodb.AttributeType.STRING),
                billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
                point_in_time_recovery=self.is_production,
                removal_policy=self._removal_policy()
            )
            self._tag(table, "DynamoDBTable", "Storage", DataType=collection)
            tables[collection] = table

        return tables

    def _create_images_bucket(self) -> s3.Bucket:
        bucket = s3.Bucket(
            self, "ListingImagesBucket",
            bucket_name=f"classifieds-admin-{self.stage}-{self.account}-{self.region}",
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            enforce_ssl=True,
            removal_policy=self._removal_policy(),
            auto_delete_objects=not self.is_production
        )
        self._tag(bucket, "S3Bucket", "Storage", DataType="ListingImages")
        return bucket

    def _common_environment(self, tables: Dict[str, dynamodb.Table], bucket: s3.Bucket) -> Dict[str, str]:
        environment = {
            f"{collection.upper()}_TABLE": table.table_name for collection, table in tables.items()
        }
        environment.update({
            "STAGE": self.stage,
            "LISTING_IMAGES_BUCKET": bucket.bucket_name,
            "DOCUMENT_STORE_PROVIDER": "dynamodb",
        })
        return environment

    def _create_lambda_role(self, component: str, role_suffix: str) -> iam.Role:
        role = iam.Role(
            self, f"ClassifiedsAdmin{component}LambdaRole",
            role_name=f"classifieds-admin-{self.stage}-{role_suffix}-lambda-role",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole")
            ]
        )
        self._tag(role, "IAMRole", f"{component}Lambda")
        return role

    def _create_function(self, construct_id: str, name: str, handler: str, role: iam.Role,
                         environment: Dict[str, str], log_group: logs.LogGroup,
                         timeout: Duration, memory_size: int, description: str) -> _lambda.Function:
        """Create a Lambda function from the shared container image"""
        function = _lambda.Function(
            self, construct_id,
            function_name=f"classifieds-admin-{self.stage}-{name}",
            code=_lambda.Code.from_ecr_image(
                repository=self.lambda_image.repository,
                tag_or_digest=self.lambda_image.asset_hash,
                cmd=[handler]
            ),
            handler=_lambda.Handler.FROM_IMAGE,
            runtime=_lambda.Runtime.FROM_IMAGE,
            role=role,
            timeout=timeout,
            memory_size=memory_size,
            environment=environment,
            log_group=log_group,
            logging_format=_lambda.LoggingFormat.TEXT,
            description=description
        )
        self._tag(function, "LambdaFunction", construct_id)
        return function

    def _create_taxonomy_seed(self, tables: Dict[str, dynamodb.Table], environment: Dict[str, str],
                              log_group: logs.LogGroup) -> None:
        """Seed default categories with a custom resource"""

        seed_role = self._create_lambda_role("TaxonomySeed", "taxonomy-seed")
        tables["categories"].grant_read_write_data(seed_role)

        seed_lambda = self._create_function(
            "TaxonomySeedHandler", "taxonomy-seed", "taxonomy_seed_handler.lambda_handler", seed_role,
            environment, log_group, Duration.minutes(2), 256,
            f"Taxonomy Seed - Default categories on first deploy ({self.stage})"
        )

        # The handler answers CloudFormation itself through the ResponseURL
        seed_resource = CustomResource(
            self, "TaxonomySeedResource",
            service_token=seed_lambda.function_arn,
            properties={
                'CategoriesTable': tables["categories"].table_name,
                'Stage': self.stage
            }
        )
        seed_resource.node.add_dependency(tables["categories"])
        seed_resource.node.add_dependency(seed_role)

    def _create_api_gateway(self, taxonomy_lambda: _lambda.Function, listings_lambda: _lambda.Function,
                            site_admin_lambda: _lambda.Function, ai_lambda: _lambda.Function,
                            log_group: logs.LogGroup) -> apigwv2.HttpApi:
        """HTTP API for the admin backend, access logs in the shared log group"""

        api = apigwv2.HttpApi(
            self, "ClassifiedsAdminHttpApi",
            api_name=f"Classifieds Admin {self.stage.capitalize()} API",
            description=f"Admin endpoints for the classifieds marketplace ({self.stage})",
            cors_preflight=apigwv2.CorsPreflightOptions(
                allow_origins=["*"],
                allow_methods=[apigwv2.CorsHttpMethod.ANY],
                allow_headers=["content-type", "authorization"]
            )
        )

        self._add_routes(api, "Taxonomy", taxonomy_lambda, TAXONOMY_ROUTES)
        self._add_routes(api, "Listings", listings_lambda, LISTING_ROUTES)
        self._add_routes(api, "SiteAdmin", site_admin_lambda, SITE_ADMIN_ROUTES)
        self._add_routes(api, "AiFlows", ai_lambda, AI_ROUTES)

        # HttpApi has no access log props; set them on the L1 default stage
        default_stage = api.default_stage.node.default_child
        default_stage.add_property_override("AccessLogSettings.DestinationArn", log_group.log_group_arn)
        default_stage.add_property_override("AccessLogSettings.Format", json.dumps(ACCESS_LOG_FORMAT))
        log_group.grant_write(iam.ServicePrincipal("apigateway.amazonaws.com"))

        self._tag(api, "ApiGateway", "AdminApi")
        return api

    @staticmethod
    def _add_routes(api: apigwv2.HttpApi, name: str, function: _lambda.Function, routes: List) -> None:
        integration = integrations.HttpLambdaIntegration(
            f"{name}Integration",
            handler=function,
            timeout=Duration.seconds(29)
        )

        for path, methods in routes:
            api.add_routes(path=path, methods=methods, integration=integration)

    def _create_monitoring(self, functions: List[_lambda.Function]) -> None:
        """Error and throttle alarms per API function"""

        for function in functions:
            component = function.node.id
            alarms = [
                ("Errors", function.metric_errors(period=Duration.minutes(5)), 5, 2,
                 f"High error rate in {component} Lambda ({self.stage})"),
                ("Throttles", function.metric_throttles(period=Duration.minutes(5)), 1, 1,
                 f"{component} Lambda is being throttled ({self.stage})"),
            ]

            for kind, metric, threshold, evaluation_periods, description in alarms:
                cloudwatch.Alarm(
                    self, f"{component}{kind}Alarm",
                    alarm_name=f"classifieds-admin-{self.stage}-{component.lower()}-{kind.lower()}",
                    metric=metric,
                    threshold=threshold,
                    evaluation_periods=evaluation_periods,
                    treat_missing_data=cloudwatch.TreatMissingData.NOT_BREACHING,
                    alarm_description=description
                )

    def _create_outputs(self, api_gateway: apigwv2.HttpApi, tables: Dict[str, dynamodb.Table],
                        bucket: s3.Bucket, log_group: logs.LogGroup) -> None:
        export_prefix = f"ClassifiedsAdmin-{self.stage.capitalize()}"

        outputs = [
            ("AdminApiUrl", api_gateway.api_endpoint, "Admin HTTP API endpoint", "ApiUrl"),
            ("ListingImagesBucketName", bucket.bucket_name, "S3 bucket for listing images", "BucketName"),
            ("LogGroupName", log_group.log_group_name, "CloudWatch log group", "LogGroup"),
        ]
        outputs += [
            (f"{collection.capitalize()}TableName", table.table_name,
             f"DynamoDB table for {collection}", f"{collection.capitalize()}Table")
            for collection, table in tables.items()
        ]

        for output_id, value, description, export_suffix in outputs:
            CfnOutput(
                self, output_id,
                value=value,
                description=f"{description} ({self.stage})",
                export_name=f"{export_prefix}-{export_suffix}"
            )
