from pydantic import BaseModel, Field, field_validator

# Upper bound (exclusive) of the pause before retrying "no route to host"
RETRY_WAIT = 30.0
# Seconds between progress reports
PROGRESS_INTERVAL = 15.0


class ScanConfig(BaseModel):
    """
    Validation model for scan parameters.
    Enforces strict types and safe ranges before execution.
    """
    target: str
    ports: str = "1-65535"
    parallelism: int = Field(128, ge=1)
    timeout: float = Field(1.0, gt=0)
    banner_length: int = Field(128, ge=1)
    show_failures: bool = False
    retry_no_route: bool = False

    @field_validator('target')
    @classmethod
    def validate_target(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("No target given")
        return v
