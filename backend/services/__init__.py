"""Services for Jade Translate."""
from .retry_policy import RetryPolicy, RetryExhaustedError, run_with_retry
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError
from .text_extractor import TextExtractor, InvalidDocumentError
from .translator import Translator, TranslationResult, TranslationError, TranslationValidationError
from .document_loader import DocumentLoader, DocumentValidationError
from .json_processor import process_json_document, JSONProcessingResult
from .page_renderer import PageRenderer, FitzPageRenderer
from .proxy_client import ExtractionProxyClient, TranslationProxyClient, ProxyError, ExtractionProxyError, TranslationProxyError
from .batch_scheduler import run_batches, partition
from .pipeline_store import PipelineStore
from .pipeline_orchestrator import PipelineOrchestrator, PipelineError

__all__ = ['RetryPolicy', 'RetryExhaustedError', 'run_with_retry', 'LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError', 'TextExtractor', 'InvalidDocumentError', 'Translator', 'TranslationResult', 'TranslationError', 'TranslationValidationError', 'DocumentLoader', 'DocumentValidationError', 'process_json_document', 'JSONProcessingResult', 'PageRenderer', 'FitzPageRenderer', 'ExtractionProxyClient', 'TranslationProxyClient', 'ProxyError', 'ExtractionProxyError', 'TranslationProxyError', 'run_batches', 'partition', 'PipelineStore', 'PipelineOrchestrator', 'PipelineError']
