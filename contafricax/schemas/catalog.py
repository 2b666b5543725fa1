from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from contafricax.orm_models import ReportGroup, TransactionType

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

# Groups a category may use, per transaction type
ALLOWED_GROUPS = {
    TransactionType.revenue: {ReportGroup.operating, ReportGroup.non_operating},
    TransactionType.expense: {
        ReportGroup.operating,
        ReportGroup.cost_of_sales,
        ReportGroup.financial,
        ReportGroup.tax,
    },
}


def check_report_group(ttype: TransactionType, group: ReportGroup) -> None:
    if group not in ALLOWED_GROUPS[ttype]:
        raise ValueError(
            f"report_group '{group.value}' is not valid for {ttype.value} categories"
        )


def _strip_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("Name is required")
    return v


class CategoryCreate(BaseModel):
    name: str = Field(max_length=128)
    type: TransactionType
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    icon: Optional[str] = Field(default=None, max_length=64)
    report_group: ReportGroup = ReportGroup.operating

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _strip_name(v)

    @model_validator(mode="after")
    def _group_matches_type(self):
        check_report_group(self.type, self.report_group)
        return self


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=128)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    icon: Optional[str] = Field(default=None, max_length=64)
    report_group: Optional[ReportGroup] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: Optional[str]) -> Optional[str]:
        return _strip_name(v)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: TransactionType
    color: Optional[str] = None
    icon: Optional[str] = None
    report_group: ReportGroup


class TagCreate(BaseModel):
    name: str = Field(max_length=64)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _strip_name(v)


class TagUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=64)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)

    @field_validator("name")
    @classmethod
    def _name(cls, v: Optional[str]) -> Optional[str]:
        return _strip_name(v)


class TagOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: Optional[str] = None
