"""Request schemas for Autoscaling API

Pydantic models for validating incoming HTTP requests.
"""

from pydantic import BaseModel, Field, model_validator


class ManualScaleRequestSchema(BaseModel):
    """
    Request schema for an administrative scale-up

    Used for POST /autoscaling/accounts/{account_id}/scale endpoint.
    """

    delta_ram: int = Field(
        default=0,
        ge=0,
        description="RAM to add (MB)"
    )

    delta_cpu: int = Field(
        default=0,
        ge=0,
        description="CPU to add (percentage points)"
    )

    @model_validator(mode="after")
    def validate_not_empty(self):
        """At least one dimension must increase"""
        if self.delta_ram == 0 and self.delta_cpu == 0:
            raise ValueError("delta_ram or delta_cpu must be greater than 0")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "delta_ram": 512,
                "delta_cpu": 0
            }
        }


class AutoscalingToggleRequestSchema(BaseModel):
    """
    Request schema for switching autoscaling on or off

    Used for PUT /autoscaling/accounts/{account_id}/autoscaling endpoint.
    """

    enabled: bool = Field(..., description="True to include the account in sweeps")

    class Config:
        json_schema_extra = {
            "example": {
                "enabled": False
            }
        }
