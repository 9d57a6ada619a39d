import logging
from typing import Any, Dict, List, Optional, Sequence

from swis_datasource_toolkit.core.models import ColumnMetadata, QueryFormat, QueryMetadata, SemanticType
from swis_datasource_toolkit.exceptions import SchemaError

logger = logging.getLogger(__name__)

NUMBER_TYPE_MARKERS = ('Int', 'Double', 'Decimal', 'Single')
TIME_TYPE_MARKER = 'DateTime'
BOOLEAN_TYPE_MARKER = 'Boolean'

TIME_COLUMN_ALIASES = ('time', 'timestamp', 'date', 'datetime', 'observationtimestamp')

# Substrings that make a string column a good series label, checked case-insensitively
LABEL_COLUMN_KEYWORDS = ('name', 'metric', 'label', 'key', 'caption', 'id', 'interface', 'device', 'entity',
                         'node', 'component')


def translate_type(data_type: Optional[str]) -> SemanticType:
    data_type = data_type or ''
    if any(marker in data_type for marker in NUMBER_TYPE_MARKERS):
        return SemanticType.NUMBER
    if TIME_TYPE_MARKER in data_type:
        return SemanticType.TIME
    if BOOLEAN_TYPE_MARKER in data_type:
        return SemanticType.BOOLEAN
    return SemanticType.STRING


def _python_type_name(value: Any) -> str:
    """Map a JSON-decoded value to the SWIS type name it most likely came from"""
    if isinstance(value, bool):
        return 'System.Boolean'
    if isinstance(value, int):
        return 'System.Int64'
    if isinstance(value, float):
        return 'System.Double'
    return 'System.String'


class SwisMetadataExtractor:
    """
    Derives column metadata for a query from the SWIS `WITH SCHEMAONLY` response.

    Schema rows look like `{"Index": 0, "Alias": "Caption", "DataType": "System.String"}`.
    """

    def derive(self, schema_rows: Sequence[Dict[str, Any]], query_format: QueryFormat) -> QueryMetadata:
        """
        Build the QueryMetadata for one execution.

        Raises:
            SchemaError: For time series when fewer than 2 columns or no time column exist.
                The caller is expected to fall back to the table format.
        """
        query_format = QueryFormat(query_format)
        ordered = sorted(schema_rows or [], key=lambda r: r.get('Index', 0))

        columns: List[ColumnMetadata] = []
        for position, row in enumerate(ordered):
            if row.get('Index', position) != position:
                logger.warning(f"Schema column {row.get('Alias')!r} reported index {row.get('Index')}, "
                               f"using position {position}")
            data_type = row.get('DataType') or ''
            columns.append(ColumnMetadata(index=position,
                                          name=str(row.get('Alias') or ''),
                                          semantic_type=translate_type(data_type),
                                          data_type=data_type))

        time_column_index = self.find_time_column(columns)
        label_column_index = self.find_label_column(columns, time_column_index)

        if query_format == QueryFormat.TIME_SERIES:
            if len(columns) < 2:
                raise SchemaError('There has to be at least 2 columns defined for Series')
            if time_column_index == -1:
                raise SchemaError('Missing DateTime column which is needed for Series')

        metadata = QueryMetadata(time_column_index=time_column_index,
                                 label_column_index=label_column_index,
                                 columns=tuple(columns))
        logger.debug(f"Derived metadata: time column {time_column_index}, label column {label_column_index}, "
                     f"columns {metadata.column_names}")
        return metadata

    def infer_from_record(self, record: Dict[str, Any]) -> QueryMetadata:
        """Build table metadata from one data record's own keys, for results whose schema is missing or stale"""
        schema_rows = [
            {'Index': i, 'Alias': key, 'DataType': _python_type_name(value)}
            for i, (key, value) in enumerate(record.items())
        ]
        return self.derive(schema_rows, QueryFormat.TABLE)

    @staticmethod
    def find_time_column(columns: Sequence[ColumnMetadata]) -> int:
        for column in columns:
            if TIME_TYPE_MARKER.lower() in column.data_type.lower():
                return column.index
        for column in columns:
            if column.name.lower() in TIME_COLUMN_ALIASES:
                return column.index
        return -1

    @staticmethod
    def find_label_column(columns: Sequence[ColumnMetadata], time_column_index: int = -1) -> int:
        candidates = [c for c in columns if c.semantic_type == SemanticType.STRING and c.index != time_column_index]
        for column in candidates:
            name = column.name.lower()
            if any(keyword in name for keyword in LABEL_COLUMN_KEYWORDS):
                return column.index
        if candidates:
            return candidates[0].index
        return -1
