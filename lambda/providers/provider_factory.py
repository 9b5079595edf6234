"""
    Provider Factory for the document store, image storage and LLM providers
"""

from typing import Dict, Type, TypeVar
from providers.provider_interfaces import LLMProvider, ImageStorage, DocumentStore
from providers.llm.bedrock_provider import BedrockProvider
from providers.llm.openai_provider import OpenAIProvider
from providers.storage.s3_storage_provider import S3StorageProvider
from providers.storage.dynamodb_document_store import DynamoDBDocumentStore
from providers.storage.memory_document_store import MemoryDocumentStore


P = TypeVar('P')


class ProviderFactory:
    """Unified factory for creating all providers, selected by config name"""

    _llm_providers: Dict[str, Type[LLMProvider]] = {
        'bedrock': BedrockProvider,
        'openai': OpenAIProvider
    }

    _image_storage_providers: Dict[str, Type[ImageStorage]] = {
        's3': S3StorageProvider
    }

    _document_store_providers: Dict[str, Type[DocumentStore]] = {
        'dynamodb': DynamoDBDocumentStore,
        'memory': MemoryDocumentStore
    }

    @staticmethod
    def _create(registry: Dict[str, Type[P]], kind: str, provider_name: str) -> P:
        provider_class = registry.get(provider_name)
        if provider_class is None:
            raise ValueError(f"Unknown {kind} provider '{provider_name}'. Available: {', '.join(registry)}")
        return provider_class()

    @classmethod
    def create_llm_provider(cls, provider_name: str) -> LLMProvider:
        return cls._create(cls._llm_providers, "LLM", provider_name)

    @classmethod
    def create_image_storage(cls, provider_name: str) -> ImageStorage:
        return cls._create(cls._image_storage_providers, "image storage", provider_name)

    @classmethod
    def create_document_store(cls, provider_name: str) -> DocumentStore:
        return cls._create(cls._document_store_providers, "document store", provider_name)
