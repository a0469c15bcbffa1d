from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Tuple

# Typed, immutable order model. Instances are only built by order_validator
# from sanitized input and are consumed read-only by the assemblers.

_FROZEN = ConfigDict(frozen=True, extra="forbid")


class OrderItem(BaseModel):
    model_config = _FROZEN

    product_code: str
    quantity: str = Field(description="Decimal string, strictly positive.")
    price: str = Field(description="Decimal string, non-negative.")
    description: Optional[str] = None
    unit: str = "EA"


class OrderParty(BaseModel):
    model_config = _FROZEN

    qualifier: str = Field(min_length=2, max_length=2)
    id: str
    name: Optional[str] = None
    address: Optional[str] = None
    contact: Optional[str] = None
    contact_type: Optional[str] = None


class Order(BaseModel):
    model_config = _FROZEN

    message_ref: str
    order_number: str
    order_date: str
    parties: Tuple[OrderParty, ...] = Field(min_length=2)
    items: Tuple[OrderItem, ...] = Field(min_length=1)
    delivery_date: Optional[str] = None
    currency: Optional[str] = None
    delivery_location: Optional[str] = None
    payment_terms: Optional[str] = None
    tax_rate: Optional[str] = None
    special_instructions: Optional[str] = None
    incoterms: Optional[str] = None

    def parties_with(self, qualifier: str) -> Tuple[OrderParty, ...]:
        return tuple(party for party in self.parties if party.qualifier == qualifier)
