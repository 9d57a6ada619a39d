import logging
from typing import Any, Dict, Optional

import requests

from swis_datasource_toolkit.core.settings import EXTERNAL_CALL_TIMEOUT, SWIS_CONNECTION_TEST_QUERY, SWIS_QUERY_PATH
from swis_datasource_toolkit.exceptions import TransportError

logger = logging.getLogger(__name__)


class SwisApiProcessor:
    """
    HTTP transport for the SolarWinds Information Service JSON API.

    Every call is a single attempt: failures are converted to TransportError with the
    HTTP status preserved (0 when no response was received) and never retried here.
    """

    def __init__(self, swis_url, swis_username=None, swis_password=None, ssl_verify='true',
                 timeout=EXTERNAL_CALL_TIMEOUT, headers=None):
        if not swis_url:
            raise ValueError('SwisApiProcessor requires swis_url')
        self.__url = swis_url.rstrip('/')
        if isinstance(ssl_verify, str):
            self.__ssl_verify = ssl_verify.lower() != 'false'
        else:
            self.__ssl_verify = bool(ssl_verify)
        self.__auth = (swis_username, swis_password) if swis_username else None
        self.__timeout = timeout
        self.headers = {'Content-Type': 'application/json'}
        if headers:
            self.headers.update(headers)

    @property
    def query_url(self) -> str:
        return f'{self.__url}{SWIS_QUERY_PATH}'

    @staticmethod
    def _response_error_message(response) -> str:
        """SWIS reports failures as {"Message": "..."}; fall back to the raw body or status line."""
        try:
            data = response.json()
            if isinstance(data, dict):
                message = data.get('Message') or data.get('message')
                if message:
                    return str(message)
        except ValueError:
            pass
        if response.status_code == 404:
            return 'SWIS service is not available (404)'
        text = (response.text or '').strip()
        return text or response.reason or f'HTTP {response.status_code}'

    def _handle_response(self, response, context: str) -> Dict[str, Any]:
        if response.status_code != 200:
            message = self._response_error_message(response)
            logger.error(f"{context} failed with status {response.status_code}: {message}")
            raise TransportError(response.status_code, message)
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{context} returned a non-JSON body: {e}")
            raise TransportError(response.status_code, f'Invalid JSON in SWIS response: {e}')

    def _request(self, method: str, context: str, **kwargs) -> Dict[str, Any]:
        try:
            response = requests.request(method, self.query_url, headers=self.headers, auth=self.__auth,
                                        verify=self.__ssl_verify, timeout=self.__timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout during {context}: {e}")
            raise TransportError(0, f'SWIS request timed out: {e}')
        except requests.exceptions.RequestException as e:
            logger.error(f"Connection error during {context}: {e}")
            raise TransportError(0, f'Could not connect to SWIS at {self.__url}: {e}')
        return self._handle_response(response, context)

    def execute_query(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        POST a SWQL query with bound parameters.

        Returns:
            The decoded response body, `{"results": [...]}`
        """
        payload = {'query': query, 'parameters': parameters or {}}
        logger.debug(f"Executing SWQL query: {query}")
        return self._request('POST', 'SWIS query', json=payload)

    def test_connection(self) -> bool:
        self._request('GET', 'SWIS connection test', params={'query': SWIS_CONNECTION_TEST_QUERY})
        return True
