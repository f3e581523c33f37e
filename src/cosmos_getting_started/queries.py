"""
Query construction for the walkthrough container.

Two styles are supported and both compile to a QuerySpec:

- raw SQL text, e.g. ``raw_query("SELECT * FROM c WHERE c.partitionKey = 'Andersen'")``
- a typed filter built from model field accessors, e.g.
  ``TypedQuery(Family).where(fields_of(Family).partition_key == "Andersen")``

Execution and paging live in one place (``CosmosDBConnection.query_items``),
so callers never care which style produced the spec.
"""

from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Type

from pydantic import BaseModel

ROOT_ALIAS = "c"


class QuerySpec(NamedTuple):
    query: str
    parameters: Sequence[Dict[str, Any]] = ()


def raw_query(text: str, parameters: Optional[List[Dict[str, Any]]] = None) -> QuerySpec:
    """Wrap a hand-written SQL query."""
    return QuerySpec(text, list(parameters or []))


class Predicate:
    """A boolean filter expression over document properties."""

    def __init__(self, op: str, left: Any, right: Any):
        self.op = op
        self.left = left
        self.right = right

    def __and__(self, other: "Predicate") -> "Predicate":
        return Predicate("AND", self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return Predicate("OR", self, other)

    def compile(self, parameters: List[Dict[str, Any]]) -> str:
        """Render as SQL, appending bound values to ``parameters``."""
        if self.op == "AND":
            return f"{self.left.compile(parameters)} AND {self.right.compile(parameters)}"
        if self.op == "OR":
            return f"({self.left.compile(parameters)} OR {self.right.compile(parameters)})"

        name = f"@p{len(parameters)}"
        parameters.append({"name": name, "value": self.right})
        return f"{self.left.sql} {self.op} {name}"

    def __repr__(self) -> str:
        return f"Predicate({self.op!r}, {self.left!r}, {self.right!r})"


class Field:
    """Typed accessor for a (possibly nested) document property."""

    def __init__(self, path: List[str], annotation: Any = None):
        self.path = path
        self.annotation = annotation

    @property
    def sql(self) -> str:
        return ".".join([ROOT_ALIAS] + self.path)

    def __getattr__(self, name: str) -> "Field":
        if name.startswith("_"):
            raise AttributeError(name)
        if not (isinstance(self.annotation, type) and issubclass(self.annotation, BaseModel)):
            raise AttributeError(f"{self.sql} has no nested field {name!r}")
        child = fields_of(self.annotation)
        nested = getattr(child, name)
        return Field(self.path + nested.path, nested.annotation)

    def __eq__(self, value: Any) -> Predicate:  # type: ignore[override]
        return Predicate("=", self, value)

    def __ne__(self, value: Any) -> Predicate:  # type: ignore[override]
        return Predicate("!=", self, value)

    def __lt__(self, value: Any) -> Predicate:
        return Predicate("<", self, value)

    def __le__(self, value: Any) -> Predicate:
        return Predicate("<=", self, value)

    def __gt__(self, value: Any) -> Predicate:
        return Predicate(">", self, value)

    def __ge__(self, value: Any) -> Predicate:
        return Predicate(">=", self, value)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Field({self.sql})"


class ModelFields:
    """Attribute namespace exposing one Field per model field."""

    def __init__(self, model: Type[BaseModel]):
        self._model = model

    def __getattr__(self, name: str) -> Field:
        if name.startswith("_"):
            raise AttributeError(name)
        info = self._model.model_fields.get(name)
        if info is None:
            raise AttributeError(f"{self._model.__name__} has no field {name!r}")
        return Field([info.alias or name], info.annotation)


def fields_of(model: Type[BaseModel]) -> ModelFields:
    return ModelFields(model)


class TypedQuery:
    """Composable ``SELECT * FROM c WHERE ...`` over a model type."""

    def __init__(self, model: Type[BaseModel], predicate: Optional[Predicate] = None):
        self.model = model
        self.predicate = predicate

    def where(self, predicate: Predicate) -> "TypedQuery":
        """Return a new query with ``predicate`` AND-ed onto the filter."""
        if self.predicate is not None:
            predicate = self.predicate & predicate
        return TypedQuery(self.model, predicate)

    def to_spec(self) -> QuerySpec:
        parameters: List[Dict[str, Any]] = []
        query = f"SELECT * FROM {ROOT_ALIAS}"
        if self.predicate is not None:
            query += f" WHERE {self.predicate.compile(parameters)}"
        return QuerySpec(query, parameters)


def as_spec(query: Any) -> QuerySpec:
    """Normalize a raw string, QuerySpec or TypedQuery to a QuerySpec."""
    if isinstance(query, QuerySpec):
        return query
    if isinstance(query, TypedQuery):
        return query.to_spec()
    if isinstance(query, str):
        return raw_query(query)
    raise TypeError(f"Unsupported query type: {type(query).__name__}")
