"""Report models for the smoke run."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NetworkErrorRecord(BaseModel):
    """An API call that answered with status >= 400 (0 when it never answered)."""

    method: str
    url: str
    status: int


class SmokeReport(BaseModel):
    """Single structured verdict of a smoke run.

    Boolean flags start False and are only flipped on confirmed evidence.
    Serialized with camelCase keys, which is the contract CI parses.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    base_url: str
    case_created: bool = False
    created_case_id: str | None = None
    review_summary_ok: bool = False
    document_uploaded_ok: bool = False
    ui_document_visible_ok: bool = False
    console_errors: list[str] = Field(default_factory=list)
    page_errors: list[str] = Field(default_factory=list)
    network_errors: list[NetworkErrorRecord] = Field(default_factory=list)
    dev_log_tail: list[str] | None = None

    def succeeded(self, run_error: BaseException | None = None) -> bool:
        """True only for an error-free run with all authoritative flags set."""
        return (
            run_error is None
            and self.case_created
            and self.review_summary_ok
            and self.document_uploaded_ok
        )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
