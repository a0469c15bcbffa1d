from pydantic import BaseModel, Field
from typing import List, Optional

# Models for the partial, diagnostic reconstruction of an ORDERS interchange.


class DecodedElement(BaseModel):
    """A single data element; composites keep their unescaped components."""
    components: List[str]
    position: int

    @property
    def value(self) -> str:
        return self.components[0] if self.components else ""

    def get_component(self, position: int) -> Optional[str]:
        """Retrieves a component by its position (1-based index)."""
        if 1 <= position <= len(self.components):
            return self.components[position - 1]
        return None


class DecodedSegment(BaseModel):
    segment_id: str
    elements: List[DecodedElement]
    line_number: int
    raw_segment: str

    def get_element(self, position: int) -> Optional[DecodedElement]:
        """Retrieves an element by its position (1-based index)."""
        if 1 <= position <= len(self.elements):
            return self.elements[position - 1]
        return None

    def get_value(self, position: int, component: int = 1) -> Optional[str]:
        element = self.get_element(position)
        return element.get_component(component) if element else None


class DecodedParty(BaseModel):
    qualifier: str
    id: str
    name: Optional[str] = None


class DecodedItem(BaseModel):
    line_number: str
    product_code: str


class DecodedOrder(BaseModel):
    message_ref: Optional[str] = None
    message_type: Optional[str] = None
    order_number: Optional[str] = None
    order_date: Optional[str] = None
    delivery_date: Optional[str] = None
    currency: Optional[str] = None
    parties: List[DecodedParty] = Field(default_factory=list)
    items: List[DecodedItem] = Field(default_factory=list)
    skipped_segments: int = 0
