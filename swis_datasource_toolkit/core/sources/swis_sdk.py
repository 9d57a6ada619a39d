"""
SWIS-specific SDK implementation
"""

import logging
from typing import Dict, Any, Optional, List, Union
from datetime import datetime

from ...exceptions import ConnectionError, SwisSDKError, TaskExecutionError, ValidationError
from ..integrations.source_api_processors.swis_api_processor import SwisApiProcessor
from ..integrations.source_managers.swis_source_manager import SwisSourceManager
from ..integrations.result_shapers.swis_result_shaper import WideFramePolicy
from ..models import QueryFormat, QueryRequest, SwisQuery, TemplateVariable
from ..sdk_base import BaseSDK
from ..settings import EXTERNAL_CALL_TIMEOUT
from ..utils.logging_utils import log_function_call

logger = logging.getLogger(__name__)


class SwisSDK(BaseSDK):
    """
    SWIS-specific SDK implementation
    Provides high-level query methods on top of SwisSourceManager
    """

    source_name = 'swis'

    def __init__(self, credentials_file_path: str, wide_frame_policy: Optional[WideFramePolicy] = None):
        super().__init__(credentials_file_path)
        self.api_processor = SwisApiProcessor(
            swis_url=self.config['swis_url'],
            swis_username=self.config.get('swis_username'),
            swis_password=self.config.get('swis_password'),
            ssl_verify=self.config.get('ssl_verify', 'true'),
            timeout=self.config.get('timeout', EXTERNAL_CALL_TIMEOUT),
        )
        self.source_manager = SwisSourceManager(self.api_processor, wide_frame_policy=wide_frame_policy)

    def _get_required_keys(self):
        return ['swis_url']

    def test_connection(self) -> bool:
        """
        Test connection to the SWIS endpoint

        Returns:
            True if connection successful

        Raises:
            ConnectionError: If connection fails
        """
        try:
            return self.api_processor.test_connection()
        except Exception as e:
            raise ConnectionError(f"Connection test failed for swis: {e}")

    @staticmethod
    def _to_queries(queries: Union[str, SwisQuery, List[Union[str, SwisQuery]]],
                    query_format: QueryFormat) -> List[SwisQuery]:
        if isinstance(queries, (str, SwisQuery)):
            queries = [queries]
        result = []
        for i, query in enumerate(queries):
            if isinstance(query, str):
                query = SwisQuery(ref_id=chr(ord('A') + i % 26), text=query, format=query_format)
            result.append(query)
        return result

    @log_function_call
    def query(self,
              queries: Union[str, SwisQuery, List[Union[str, SwisQuery]]],
              query_format: QueryFormat = QueryFormat.TIME_SERIES,
              start_time: Optional[datetime] = None,
              end_time: Optional[datetime] = None,
              duration_minutes: Optional[int] = None,
              interval_ms: Optional[int] = None,
              scoped_vars: Optional[Dict[str, TemplateVariable]] = None) -> Dict[str, Any]:
        """
        Execute one or more SWQL queries concurrently

        Args:
            queries: Query text, a SwisQuery, or a list of either; plain strings get ref ids A, B, ...
            query_format: Output format for plain-string queries
            start_time: Start time for the query
            end_time: End time for the query
            duration_minutes: Duration in minutes (used if start_time not provided)
            interval_ms: Bucket size for downsample() and the granularity parameter
            scoped_vars: Template variables available to the queries

        Returns:
            Dictionary with the shaped `data` of successful queries and `errors` keyed by ref id
        """
        request = QueryRequest(
            targets=self._to_queries(queries, QueryFormat(query_format)),
            time_range=self._create_time_range(start_time, end_time, duration_minutes),
            interval_ms=interval_ms or 0,
            scoped_vars=scoped_vars or {},
        )
        try:
            return self.source_manager.execute_queries(request).to_dict()
        except SwisSDKError:
            raise
        except Exception as e:
            raise TaskExecutionError(f"SWIS query execution failed: {e}")

    @log_function_call
    def annotation_query(self,
                         query_text: str,
                         start_time: Optional[datetime] = None,
                         end_time: Optional[datetime] = None,
                         duration_minutes: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Fetch annotations: rows with a time column (or one named `time`), optional `text` and comma separated `tags`

        Raises:
            ValidationError: If no query text is given
        """
        if not query_text:
            raise ValidationError('Query missing in annotation definition')
        request = QueryRequest(
            targets=[],
            time_range=self._create_time_range(start_time, end_time, duration_minutes),
            interval_ms=0,
        )
        query = SwisQuery(ref_id='annotation', text=query_text, format=QueryFormat.ANNOTATION)
        return self._execute_single(query, request)

    @log_function_call
    def metric_find_query(self, query_text: str) -> List[Dict[str, Any]]:
        """
        Fetch template variable values from a query returning exactly `__text` and `__value` columns
        """
        query = SwisQuery(ref_id='search', text=query_text, format=QueryFormat.SEARCH)
        return self._execute_single(query, QueryRequest(targets=[], time_range=None, interval_ms=0))

    def _execute_single(self, query: SwisQuery, request: QueryRequest) -> List[Dict[str, Any]]:
        try:
            return [item.to_dict() for item in self.source_manager.execute_query(query, request)]
        except SwisSDKError:
            raise
        except Exception as e:
            raise TaskExecutionError(f"SWIS {query.format.value} query failed: {e}")
