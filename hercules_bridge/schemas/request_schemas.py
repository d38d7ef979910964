from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    REQUIRED: ClassVar[tuple[str, ...]] = ()

    def missing_fields(self) -> list[str]:
        missing: list[str] = []
        for field in self.REQUIRED:
            value = getattr(self, field)
            if value is None or not str(value).strip():
                missing.append(type(self).model_fields[field].alias or field)
        return missing

    @classmethod
    def from_arguments(cls, arguments: dict[str, Any] | None):
        # Tool arguments arrive loosely typed; coerce scalars to strings.
        cleaned = {
            key: str(value)
            for key, value in (arguments or {}).items()
            if value is not None and value != ""
        }
        return cls.model_validate(cleaned)


class CreateTestCaseRequest(_CamelRequest):
    REQUIRED = ("name", "gherkin_content")

    name: str | None = None
    gherkin_content: str | None = None
    test_data_path: str | None = None
    llm_model: str | None = None
    llm_api_key: str | None = None


class RunTestCaseRequest(_CamelRequest):
    REQUIRED = ("test_case_id",)

    test_case_id: str | None = None
    llm_model: str | None = None
    llm_api_key: str | None = None


class TestCaseLookupRequest(_CamelRequest):
    __test__ = False
    REQUIRED = ("test_case_id",)

    test_case_id: str | None = None
