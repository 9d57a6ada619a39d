import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional

from swis_datasource_toolkit.core.integrations.result_shapers.swis_result_shaper import SwisResultShaper, \
    WideFramePolicy
from swis_datasource_toolkit.core.integrations.source_api_processors.swis_api_processor import SwisApiProcessor
from swis_datasource_toolkit.core.integrations.source_metadata_extractors.swis_metadata_extractor import \
    SwisMetadataExtractor
from swis_datasource_toolkit.core.models import (
    QueryExecutionContext,
    QueryFormat,
    QueryMetadata,
    QueryRequest,
    QueryResponse,
    QueryResult,
    QueryState,
    SwisQuery,
    TemplateVariable,
)
from swis_datasource_toolkit.core.settings import MAX_CONCURRENT_QUERIES
from swis_datasource_toolkit.core.utils.logging_utils import log_function_call
from swis_datasource_toolkit.core.utils.swql_utils import resolve_macros, substitute_template_variables, \
    with_schema_only
from swis_datasource_toolkit.core.utils.time_utils import granularity_seconds
from swis_datasource_toolkit.exceptions import EmptyQueryError, SchemaError, TransportError

logger = logging.getLogger(__name__)

TemplateSubstitution = Callable[[str, Mapping[str, TemplateVariable]], str]


class SwisSourceManager:
    """
    Runs SWQL queries with the two-phase SWIS protocol: a `WITH SCHEMAONLY` call to learn the
    columns, then the data call, then shaping of the rows into the requested format.
    """

    def __init__(self, swis_api_processor: SwisApiProcessor,
                 metadata_extractor: Optional[SwisMetadataExtractor] = None,
                 result_shaper: Optional[SwisResultShaper] = None,
                 wide_frame_policy: Optional[WideFramePolicy] = None,
                 template_substitution: TemplateSubstitution = substitute_template_variables,
                 max_workers: int = MAX_CONCURRENT_QUERIES):
        self.swis_api_processor = swis_api_processor
        self.metadata_extractor = metadata_extractor or SwisMetadataExtractor()
        self.result_shaper = result_shaper or SwisResultShaper(wide_frame_policy=wide_frame_policy,
                                                               metadata_extractor=self.metadata_extractor)
        self.template_substitution = template_substitution
        self.max_workers = max_workers

    @staticmethod
    def _build_parameters(request: QueryRequest, interval_ms: Optional[int]) -> Dict[str, Any]:
        if request.time_range is not None:
            parameters = request.time_range.to_parameters()
        else:
            parameters = {'timeFrom': '', 'timeTo': ''}
        parameters['granularity'] = granularity_seconds(interval_ms)
        return parameters

    @staticmethod
    def _transition(context: QueryExecutionContext, state: QueryState):
        logger.debug(f"Query {context.ref_id!r}: {context.state.value} -> {state.value}")
        context.state = state

    def _fetch_schema(self, context: QueryExecutionContext) -> List[Dict[str, Any]]:
        self._transition(context, QueryState.SCHEMA_REQUESTED)
        try:
            response = self.swis_api_processor.execute_query(with_schema_only(context.rewritten_text),
                                                             context.parameters)
        except TransportError as e:
            logger.warning(f"Schema request for query {context.ref_id!r} failed, continuing without schema: {e}")
            return []
        return (response or {}).get('results') or []

    def _derive_metadata(self, context: QueryExecutionContext, schema_rows: List[Dict[str, Any]]) -> QueryMetadata:
        try:
            return self.metadata_extractor.derive(schema_rows, context.query_format)
        except SchemaError as e:
            logger.warning(f"Query {context.ref_id!r} cannot be shaped as {context.query_format.value} ({e}), "
                           f"falling back to table")
            context.query_format = QueryFormat.TABLE
            return self.metadata_extractor.derive(schema_rows, context.query_format)

    @log_function_call
    def execute_query(self, query: SwisQuery, request: QueryRequest) -> List[Any]:
        """
        Execute one query and return its shaped output.

        Raises:
            EmptyQueryError: If the query text is blank
            TransportError: If the data call fails
            MissingTimeColumnError, InvalidSearchShapeError: If the rows do not fit the annotation/search shape
        """
        if not query.text or not query.text.strip():
            raise EmptyQueryError(f"Query {query.ref_id!r} is empty")

        interval_ms = query.interval_ms if query.interval_ms is not None else request.interval_ms
        context = QueryExecutionContext(query=query, original_text=query.text, query_format=query.format,
                                        parameters=self._build_parameters(request, interval_ms))
        try:
            interpolated = self.template_substitution(context.original_text, request.scoped_vars)
            context.rewritten_text = resolve_macros(interpolated, request.time_range, interval_ms)

            schema_rows = self._fetch_schema(context)
            self._transition(context, QueryState.SCHEMA_RECEIVED)
            context.metadata = self._derive_metadata(context, schema_rows)

            self._transition(context, QueryState.DATA_REQUESTED)
            response = self.swis_api_processor.execute_query(context.rewritten_text, context.parameters)
            records = (response or {}).get('results') or []

            rows, context.metadata = self.result_shaper.project_rows(records, context.metadata)
            data = self.result_shaper.shape(rows, context.metadata, context.query_format, context.ref_id,
                                            query_text=context.rewritten_text)
            self._transition(context, QueryState.SHAPED)
            logger.info(f"Query {context.ref_id!r} returned {len(rows)} rows shaped as {context.query_format.value}")
            return data
        except Exception as e:
            self._transition(context, QueryState.FAILED)
            logger.error(f"Error while executing SWIS query {context.ref_id!r}: {e}")
            raise

    def _execute_query_result(self, query: SwisQuery, request: QueryRequest) -> QueryResult:
        try:
            return QueryResult(ref_id=query.ref_id, data=self.execute_query(query, request))
        except Exception as e:
            return QueryResult(ref_id=query.ref_id, error=e)

    @log_function_call
    def execute_queries(self, request: QueryRequest) -> QueryResponse:
        """
        Execute all visible targets of a request concurrently.

        Each query succeeds or fails on its own; failures are reported on the QueryResult of
        that ref_id and never abort the other queries.
        """
        targets = [t for t in request.targets if not t.hide]
        response = QueryResponse()
        if not targets:
            return response

        results: Dict[str, QueryResult] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(targets))) as executor:
            process = partial(self._execute_query_result, request=request)
            futures = [executor.submit(process, target) for target in targets]
            for future in as_completed(futures):
                result = future.result()
                results[result.ref_id] = result

        for target in targets:
            response.results[target.ref_id] = results[target.ref_id]
        return response
