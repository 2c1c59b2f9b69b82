"""Issue domain object."""

from datetime import date

from pydantic import BaseModel, Field, model_validator


class Issue(BaseModel):
    """Represents one edition of a magazine with a fixed page budget.

    The page budget is chosen when the issue is created and never changes
    afterwards, so ``template_pages`` is frozen.

    Attributes:
        id: Backend identifier, None until the issue has been created
        magazine_id: Magazine this issue belongs to
        issue_number: Sequential issue number within the magazine
        template_pages: Fixed page budget (e.g. 52 or 68)
        theme: Issue theme
        distribution_month: First day of the distribution month
        design_start_date: Date design work begins
        sketch_close_date: Date the sketch closes
        print_date: Date the issue goes to print
        status: Production status
    """

    id: str | None = None
    magazine_id: str | None = None
    issue_number: int = Field(default=1, ge=1)
    template_pages: int = Field(gt=0, frozen=True)
    theme: str = ""
    distribution_month: date | None = None
    design_start_date: date | None = None
    sketch_close_date: date | None = None
    print_date: date | None = None
    status: str = "draft"

    model_config = {"validate_assignment": True}

    @model_validator(mode="after")
    def check_schedule(self) -> "Issue":
        if self.design_start_date and self.sketch_close_date:
            if self.sketch_close_date <= self.design_start_date:
                raise ValueError("sketch_close_date must be after design_start_date")
        if self.sketch_close_date and self.print_date:
            if self.print_date <= self.sketch_close_date:
                raise ValueError("print_date must be after sketch_close_date")
        return self

    @property
    def is_created(self) -> bool:
        return self.id is not None

    def to_fields(self) -> dict:
        """Serialize the issue for the backend, without its id."""
        return self.model_dump(mode="json", exclude={"id"})
