"""Request and response models for the extraction and translation endpoints."""
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

LanguageCode = Literal["en", "zh"]


class APIModel(BaseModel):
    """Base model using camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PdfExtractRequest(APIModel):
    """Batch of rendered page images."""
    type: Literal["pdf"] = "pdf"
    images: List[str]  # data URLs
    file_name: str
    start_page_number: int = Field(default=1, ge=1)


class JsonExtractRequest(APIModel):
    """Whole structured document as a single text blob."""
    type: Literal["json"] = "json"
    content: str
    file_name: str


ExtractRequest = Annotated[
    Union[PdfExtractRequest, JsonExtractRequest],
    Field(discriminator="type"),
]
ExtractRequestAdapter: TypeAdapter = TypeAdapter(ExtractRequest)


class PageText(APIModel):
    page_number: int = Field(ge=1)
    text: str


class ExtractTextResponse(APIModel):
    success: bool
    extracted_text: str = ""
    page_count: int = 0
    pages: List[PageText] = Field(default_factory=list)
    file_type: Optional[Literal["pdf", "json"]] = None
    error: Optional[str] = None


class TranslateRequest(APIModel):
    text: str = Field(min_length=1)
    source_language: LanguageCode
    target_language: LanguageCode
    model: str


class TranslateResponse(APIModel):
    success: bool
    translated_text: str = ""
    source_language: str = ""
    target_language: str = ""
    model: str = ""
    error: Optional[str] = None
