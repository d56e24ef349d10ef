from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class IssuePosition(_ReportModel):
    filename: str = Field(alias="Filename")
    line: int = Field(alias="Line")
    column: int = Field(default=0, alias="Column")


class LintIssue(_ReportModel):
    pos: IssuePosition = Field(alias="Pos")
    from_linter: str = Field(alias="FromLinter")
    text: str = Field(alias="Text")


class LintResult(_ReportModel):
    """One golangci-lint JSON report, covering the whole project."""

    issues: Tuple[LintIssue, ...] = Field(default=(), alias="Issues")

    @field_validator("issues", mode="before")
    @classmethod
    def _null_issues(cls, value: Optional[object]) -> object:
        # golangci-lint writes "Issues": null when a run reports nothing.
        if value is None:
            return ()
        return value
