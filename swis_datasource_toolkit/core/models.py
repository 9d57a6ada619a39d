"""
Data models shared by the SWIS query engine.

Queries, time ranges and template variables come from the caller; column
metadata, rows and shaped outputs are produced fresh for every query execution.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class QueryFormat(str, Enum):
    TABLE = 'table'
    TIME_SERIES = 'time_series'
    ANNOTATION = 'annotation'
    SEARCH = 'search'


class SemanticType(str, Enum):
    NUMBER = 'number'
    TIME = 'time'
    BOOLEAN = 'boolean'
    STRING = 'string'


class QueryState(str, Enum):
    PENDING = 'pending'
    SCHEMA_REQUESTED = 'schema_requested'
    SCHEMA_RECEIVED = 'schema_received'
    DATA_REQUESTED = 'data_requested'
    SHAPED = 'shaped'
    FAILED = 'failed'


Row = List[Any]


def to_iso_string(value: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC string with millisecond precision, e.g. 2024-01-01T00:00:00.000Z"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S') + f'.{value.microsecond // 1000:03d}Z'


@dataclass(frozen=True)
class TimeRange:
    from_time: datetime
    to_time: datetime

    def to_parameters(self) -> Dict[str, str]:
        return {
            'timeFrom': to_iso_string(self.from_time),
            'timeTo': to_iso_string(self.to_time),
        }


@dataclass
class SwisQuery:
    ref_id: str
    text: str
    format: QueryFormat = QueryFormat.TIME_SERIES
    interval_ms: Optional[int] = None
    hide: bool = False

    def __post_init__(self):
        self.format = QueryFormat(self.format)
        if self.interval_ms is not None and self.interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got {self.interval_ms}")


@dataclass(frozen=True)
class TemplateVariable:
    name: str
    value: Union[str, int, float, List[Union[str, int, float]]]
    multi: bool = False
    include_all: bool = False


@dataclass
class QueryRequest:
    targets: List[SwisQuery]
    time_range: Optional[TimeRange] = None
    interval_ms: int = 0
    scoped_vars: Dict[str, TemplateVariable] = field(default_factory=dict)
    max_data_points: int = 0


@dataclass(frozen=True)
class ColumnMetadata:
    index: int
    name: str
    semantic_type: SemanticType
    data_type: str = ''


@dataclass(frozen=True)
class QueryMetadata:
    time_column_index: int = -1
    label_column_index: int = -1
    columns: Tuple[ColumnMetadata, ...] = ()

    @classmethod
    def empty(cls) -> 'QueryMetadata':
        return cls()

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def find_column(self, name: str) -> int:
        """Index of the column named exactly `name`, or -1"""
        for column in self.columns:
            if column.name == name:
                return column.index
        return -1


@dataclass
class TableColumn:
    name: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {'text': self.name, 'type': self.type}


@dataclass
class Table:
    columns: List[TableColumn]
    rows: List[Row]
    ref_id: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': QueryFormat.TABLE.value,
            'refId': self.ref_id,
            'columns': [c.to_dict() for c in self.columns],
            'rows': self.rows,
        }


@dataclass
class Series:
    name: str
    points: List[Tuple[int, Any]] = field(default_factory=list)
    ref_id: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target': self.name,
            'refId': self.ref_id,
            'datapoints': [[value, timestamp] for timestamp, value in self.points],
        }


@dataclass
class Field:
    name: str
    type: SemanticType
    values: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type': self.type.value, 'values': self.values}


@dataclass
class WideFrame:
    ref_id: str
    fields: List[Field] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'refId': self.ref_id, 'fields': [f.to_dict() for f in self.fields]}


@dataclass
class Annotation:
    time: int
    text: Any
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'time': self.time, 'text': self.text, 'tags': self.tags}


@dataclass
class SearchResult:
    text: Any
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {'text': self.text, 'value': self.value}


@dataclass
class QueryExecutionContext:
    """
    Everything one query execution owns, from the submitted text to the derived metadata.
    Created by the source manager for a single execution and passed explicitly through every step.
    """
    query: SwisQuery
    original_text: str
    query_format: QueryFormat
    parameters: Dict[str, Any] = field(default_factory=dict)
    rewritten_text: str = ''
    metadata: QueryMetadata = field(default_factory=QueryMetadata.empty)
    state: QueryState = QueryState.PENDING

    @property
    def ref_id(self) -> str:
        return self.query.ref_id


@dataclass
class QueryResult:
    ref_id: str
    data: List[Any] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class QueryResponse:
    results: Dict[str, QueryResult] = field(default_factory=dict)

    @property
    def data(self) -> List[Any]:
        data = []
        for result in self.results.values():
            if result.ok:
                data.extend(result.data)
        return data

    @property
    def errors(self) -> Dict[str, Exception]:
        return {ref_id: r.error for ref_id, r in self.results.items() if not r.ok}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'data': [item.to_dict() for item in self.data],
            'errors': {ref_id: str(error) for ref_id, error in self.errors.items()},
        }
