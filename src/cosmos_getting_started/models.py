"""
Family document schema stored in the walkthrough container.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CosmosModel(BaseModel):
    """Base model serialized with camelCase property names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Serialize to the JSON body sent to the store."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Parent(CosmosModel):
    first_name: str
    family_name: Optional[str] = None


class Pet(CosmosModel):
    given_name: str


class Child(CosmosModel):
    first_name: str
    gender: str
    grade: int
    family_name: Optional[str] = None
    pets: Optional[List[Pet]] = None


class Address(CosmosModel):
    state: str
    county: str
    city: str


class Family(CosmosModel):
    """A household record, addressed by ``(id, partition_key)``.

    System properties added by the store on read (``_rid``, ``_etag``,
    ``_ts``, ...) are ignored when parsing.
    """

    id: str
    partition_key: str
    last_name: str
    parents: List[Parent] = []
    children: List[Child] = []
    address: Address
    is_registered: bool = False

    def __str__(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


def sample_families() -> List[Family]:
    """Return fresh copies of the two families seeded by the walkthrough."""
    andersen = Family(
        id="Andersen.1",
        partition_key="Andersen",
        last_name="Andersen",
        parents=[
            Parent(first_name="Thomas"),
            Parent(first_name="Mary Kay"),
        ],
        children=[
            Child(
                first_name="Henriette Thaulow",
                gender="female",
                grade=5,
                pets=[Pet(given_name="Fluffy")],
            ),
        ],
        address=Address(state="WA", county="King", city="Seattle"),
        is_registered=False,
    )

    wakefield = Family(
        id="Wakefield.7",
        partition_key="Wakefield",
        last_name="Wakefield",
        parents=[
            Parent(family_name="Wakefield", first_name="Robin"),
            Parent(family_name="Miller", first_name="Ben"),
        ],
        children=[
            Child(
                family_name="Merriam",
                first_name="Jesse",
                gender="female",
                grade=8,
                pets=[Pet(given_name="Goofy"), Pet(given_name="Shadow")],
            ),
            Child(
                family_name="Miller",
                first_name="Lisa",
                gender="female",
                grade=1,
            ),
        ],
        address=Address(state="NY", county="Manhattan", city="NY"),
        is_registered=True,
    )

    return [andersen, wakefield]
