# Copyright (c) 2025 Anton Sheinin - All rights reserved.
# Unauthorized use is prohibited. See LICENSE file for details.

"""
    Classifieds Admin Backend - CDK App Entry Point
"""

import boto3
import aws_cdk as cdk
from stacks.classifieds_admin_stack import ClassifiedsAdminStack


STAGES = ("dev", "prod")
DEFAULT_REGION = "eu-west-1"


def resolve_stage(app: cdk.App) -> str:
    """Stage from `--context stage=...`, dev when omitted"""
    stage = app.node.try_get_context("stage") or "dev"
    if stage not in STAGES:
        raise ValueError(f"Invalid stage '{stage}'. Must be one of: {', '.join(STAGES)}")
    return stage


def resolve_account(app: cdk.App) -> str:
    return app.node.try_get_context("account") or boto3.client('sts').get_caller_identity()['Account']


def stage_tags(stage: str) -> dict:
    tags = {
        "App": "classifieds-admin",
        "Stage": stage,
        "Project": "classifieds-marketplace",
        "CostCenter": f"classifieds-{stage}",
        "ManagedBy": "aws-cdk",
    }
    if stage == "prod":
        tags.update({"Backup": "required", "Monitoring": "critical"})
    else:
        tags.update({"Backup": "optional", "Monitoring": "basic"})
    return tags


def main():
    app = cdk.App()
    stage = resolve_stage(app)
    tags = stage_tags(stage)

    stack_name = f"ClassifiedsAdmin-{stage.capitalize()}Stack"
    print(f"🎯 Synthesizing {stack_name} (use --context stage=dev|prod to switch)")

    stack = ClassifiedsAdminStack(
        app,
        stack_name,
        env=cdk.Environment(
            account=resolve_account(app),
            region=app.node.try_get_context("region") or DEFAULT_REGION,
        ),
        stage=stage,
        description=f"Classifieds marketplace admin backend ({stage})",
        tags=tags,
    )

    for key, value in tags.items():
        cdk.Tags.of(stack).add(key, value)

    app.synth()

if __name__ == "__main__":
    main()
