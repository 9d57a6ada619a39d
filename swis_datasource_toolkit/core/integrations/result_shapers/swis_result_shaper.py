import logging
import re
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from swis_datasource_toolkit.core.integrations.source_metadata_extractors.swis_metadata_extractor import \
    SwisMetadataExtractor
from swis_datasource_toolkit.core.models import (
    Annotation,
    Field,
    QueryFormat,
    QueryMetadata,
    Row,
    SearchResult,
    SemanticType,
    Series,
    Table,
    TableColumn,
    WideFrame,
)
from swis_datasource_toolkit.core.utils.time_utils import normalize_swis_timestamp
from swis_datasource_toolkit.exceptions import InvalidSearchShapeError, MissingTimeColumnError

logger = logging.getLogger(__name__)

# SWIS sometimes reports counters as strings; columns named like these are always numeric.
# Whole name tokens only, so `Country` or `Operator` are not counters.
NUMERIC_METRIC_TOKEN = re.compile(
    r'^(?:receive[ds]?|transmit(?:s|ted)?|bytes?|speed|util(?:ization)?|rates?|counts?|counter)$')
NAME_TOKEN_PATTERN = re.compile(r'[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+')

TRAFFIC_QUERY_KEYWORDS = ('bps', 'bytes', 'traffic', 'receive', 'transmit', 'utilization')
JOIN_PATTERN = re.compile(r'\bJOIN\b', re.IGNORECASE)
TAGS_SEPARATOR = re.compile(r'\s*,\s*')

WideFramePolicy = Callable[[str, QueryMetadata], bool]


def default_wide_frame_policy(query_text: str, metadata: QueryMetadata) -> bool:
    """
    Emit one wide frame instead of narrow series for joined or traffic-counter queries that
    return several value columns per labelled row (e.g. interface InBps / OutBps).
    """
    if len(metadata.columns) <= 3:
        return False
    if metadata.time_column_index == -1 or metadata.label_column_index == -1:
        return False
    text = (query_text or '').lower()
    if JOIN_PATTERN.search(text):
        return True
    return any(keyword in text for keyword in TRAFFIC_QUERY_KEYWORDS)


def narrow_only_policy(query_text: str, metadata: QueryMetadata) -> bool:
    return False


def name_tokens(name: str) -> List[str]:
    """Split a column name on camel case, underscores and digits: `InBytes_Total` -> ['in', 'bytes', 'total']"""
    return [token.lower() for token in NAME_TOKEN_PATTERN.findall(name or '')]


def is_numeric_metric_column(name: str) -> bool:
    return any(NUMERIC_METRIC_TOKEN.match(token) for token in name_tokens(name))


def coerce_number(value: Any) -> Any:
    """Convert numeric strings to float; anything else that is not a number is returned unchanged."""
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        logger.debug(f"Value {value!r} is not numeric, keeping it as is")
        return value


class SwisResultShaper:
    """Turns SWIS data rows into tables, series, wide frames, annotations or search results."""

    def __init__(self, wide_frame_policy: Optional[WideFramePolicy] = None,
                 metadata_extractor: Optional[SwisMetadataExtractor] = None):
        self.wide_frame_policy = wide_frame_policy or default_wide_frame_policy
        self.metadata_extractor = metadata_extractor or SwisMetadataExtractor()

    def project_rows(self, records: Sequence[Dict[str, Any]],
                     metadata: QueryMetadata) -> Tuple[List[Row], QueryMetadata]:
        """
        Project server records (JSON objects) into fixed-arity rows ordered like the metadata columns.

        If the metadata has no columns or does not match the keys of the returned records, the
        metadata is rebuilt from the first record so the rows are still shaped consistently.
        """
        records = list(records or [])
        if records and isinstance(records[0], dict) and set(records[0].keys()) != set(metadata.column_names):
            logger.warning(f"Result columns {list(records[0].keys())} do not match schema columns "
                           f"{metadata.column_names}, inferring columns from the data")
            metadata = self.metadata_extractor.infer_from_record(records[0])

        names = metadata.column_names
        rows = []
        for record in records:
            if isinstance(record, dict):
                rows.append([record.get(name) for name in names])
            else:
                rows.append(list(record))
        return rows, metadata

    def shape(self, rows: Sequence[Row], metadata: QueryMetadata, query_format: QueryFormat, ref_id: str = '',
              query_text: str = '') -> List[Any]:
        query_format = QueryFormat(query_format)
        if query_format == QueryFormat.TABLE:
            return [self.to_table(rows, metadata, ref_id)]
        if query_format == QueryFormat.TIME_SERIES:
            if metadata.time_column_index != -1 and self.wide_frame_policy(query_text, metadata):
                return [self.to_wide_frame(rows, metadata, ref_id)]
            return self.to_series(rows, metadata, ref_id)
        if query_format == QueryFormat.ANNOTATION:
            return self.to_annotations(rows, metadata)
        return self.to_search_results(rows, metadata)

    def to_table(self, rows: Sequence[Row], metadata: QueryMetadata, ref_id: str = '') -> Table:
        columns = [TableColumn(name=c.name, type=c.semantic_type.value) for c in metadata.columns]
        return Table(columns=columns, rows=[list(row) for row in rows], ref_id=ref_id)

    def _value_column_indexes(self, metadata: QueryMetadata) -> List[int]:
        return [c.index for c in metadata.columns
                if c.index not in (metadata.time_column_index, metadata.label_column_index)]

    def _column_value(self, row: Row, metadata: QueryMetadata, index: int) -> Any:
        column = metadata.columns[index]
        value = row[index]
        if column.semantic_type == SemanticType.NUMBER or is_numeric_metric_column(column.name):
            return coerce_number(value)
        return value

    def _series_name(self, row: Row, metadata: QueryMetadata, index: int) -> str:
        name = ''
        if metadata.label_column_index != -1:
            label = row[metadata.label_column_index]
            name = '' if label is None else str(label)
        if len(metadata.columns) > 3 or name == '':
            if name != '':
                name += '-'
            name += metadata.columns[index].name
        return name

    def _row_time(self, row: Row, metadata: QueryMetadata) -> int:
        if metadata.time_column_index == -1:
            return 0
        return normalize_swis_timestamp(row[metadata.time_column_index])

    def to_series(self, rows: Sequence[Row], metadata: QueryMetadata, ref_id: str = '') -> List[Series]:
        """
        One narrow series per label/value-column combination, points in row arrival order.

        With three columns or fewer the label alone names a series (`A`); with more, or
        without a label, the value column name is appended (`A-Recv`, or just `Recv`).
        """
        value_indexes = self._value_column_indexes(metadata)
        series: Dict[str, Series] = OrderedDict()
        for row in rows:
            timestamp = self._row_time(row, metadata)
            for index in value_indexes:
                name = self._series_name(row, metadata, index)
                if name not in series:
                    series[name] = Series(name=name, ref_id=ref_id)
                series[name].points.append((timestamp, self._column_value(row, metadata, index)))
        logger.debug(f"Shaped {len(rows)} rows into {len(series)} series for {ref_id!r}")
        return list(series.values())

    def to_wide_frame(self, rows: Sequence[Row], metadata: QueryMetadata, ref_id: str = '') -> WideFrame:
        """A single frame with one row per time + label combination and one field per value column."""
        time_field = Field(name=metadata.columns[metadata.time_column_index].name, type=SemanticType.TIME)
        fields = [time_field]
        label_field = None
        if metadata.label_column_index != -1:
            label_field = Field(name=metadata.columns[metadata.label_column_index].name, type=SemanticType.STRING)
            fields.append(label_field)

        value_indexes = self._value_column_indexes(metadata)
        value_fields = []
        for index in value_indexes:
            column = metadata.columns[index]
            field_type = SemanticType.NUMBER if is_numeric_metric_column(column.name) else column.semantic_type
            value_fields.append(Field(name=column.name, type=field_type))
        fields.extend(value_fields)

        for row in rows:
            time_field.values.append(self._row_time(row, metadata))
            if label_field is not None:
                label_field.values.append(row[metadata.label_column_index])
            for index, value_field in zip(value_indexes, value_fields):
                value_field.values.append(self._column_value(row, metadata, index))
        return WideFrame(ref_id=ref_id, fields=fields)

    def to_annotations(self, rows: Sequence[Row], metadata: QueryMetadata) -> List[Annotation]:
        time_index = metadata.find_column('time')
        if time_index == -1:
            time_index = metadata.time_column_index
        if time_index == -1:
            raise MissingTimeColumnError('Missing mandatory DateTime column or named [time]')

        text_index = metadata.find_column('text')
        if text_index == -1:
            text_index = metadata.label_column_index
        tags_index = metadata.find_column('tags')

        annotations = []
        for row in rows:
            tags_value = row[tags_index] if tags_index != -1 else None
            tags = TAGS_SEPARATOR.split(str(tags_value).strip()) if tags_value else []
            annotations.append(Annotation(time=normalize_swis_timestamp(row[time_index]),
                                          text=row[text_index] if text_index != -1 else None,
                                          tags=tags))
        return annotations

    def to_search_results(self, rows: Sequence[Row], metadata: QueryMetadata) -> List[SearchResult]:
        text_index = metadata.find_column('__text')
        value_index = metadata.find_column('__value')
        if len(metadata.columns) != 2 or text_index == -1 or value_index == -1:
            raise InvalidSearchShapeError('Specify __text and __value column for search')
        return [SearchResult(text=row[text_index], value=row[value_index]) for row in rows]
