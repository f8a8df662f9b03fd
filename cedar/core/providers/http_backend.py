"""
HTTP research backend using httpx.

Every backend operation is a JSON POST to `{base_url}/{command}`, where the
command is the backend's own operation name (`initialize_research`,
`create_project`, ...). Retries transient failures with exponential backoff
and maps transport and HTTP errors to BackendError.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from cedar.core.exceptions import BackendConnectionError, BackendError
from cedar.core.providers.base import FileType, ResearchBackend
from cedar.models.project import Library, ProjectHandle, Question, Reference, VariableInfo
from cedar.models.research import (
    CodeExecutionResponse,
    ResearchInitialization,
    ResearchPlanResponse,
    ResearchSessionResponse,
    ResearchSource,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class HttpResearchBackend(ResearchBackend):
    """
    Research backend reached over HTTP.

    Example:
        ```python
        backend = HttpResearchBackend({
            'base_url': 'http://localhost:8765/api',
            'api_key': 'secret',
            'timeout': 120,
        })
        init = await backend.initialize_research("Analyze churn")
        ```
    """

    name = "http"

    DEFAULT_BASE_URL = "http://localhost:8765/api"
    DEFAULT_TIMEOUT = 120.0
    DEFAULT_MAX_RETRIES = 3
    DEFAULT_RETRY_DELAY = 1.0
    RETRY_BACKOFF_FACTOR = 2.0
    RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize HTTP backend.

        Args:
            config: Keys `base_url`, `api_key`, `timeout`, `max_retries`,
                `retry_delay`; all optional
            transport: Custom httpx transport (used by tests)
        """
        super().__init__(config)
        self.base_url = (self.config.get("base_url") or self.DEFAULT_BASE_URL).rstrip("/")
        self.api_key = self.config.get("api_key")
        self.timeout = self.config.get("timeout", self.DEFAULT_TIMEOUT)
        self.max_retries = int(self.config.get("max_retries", self.DEFAULT_MAX_RETRIES))
        self.retry_delay = float(self.config.get("retry_delay", self.DEFAULT_RETRY_DELAY))
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(f"HttpResearchBackend initialized with base_url: {self.base_url}")

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the httpx client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers=self._get_headers(),
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _build_url(self, command: str) -> str:
        return f"{self.base_url}/{command.lstrip('/')}"

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(data, dict):
            return str(data.get("error") or data.get("message") or data)
        return str(data)

    async def _post(self, command: str, payload: Dict[str, Any]) -> Any:
        """
        POST a command and return the decoded JSON body.

        Raises:
            BackendConnectionError: If the backend is unreachable after retries
            BackendError: For error responses or undecodable bodies
        """
        url = self._build_url(command)
        delay = self.retry_delay
        attempt = 0

        while True:
            try:
                response = await self.client.post(url, json=payload)
            except httpx.TransportError as e:
                if attempt < self.max_retries:
                    logger.warning(f"{command}: transport error ({e}), retry {attempt + 1}/{self.max_retries} in {delay:.1f}s")
                    await asyncio.sleep(delay)
                    attempt += 1
                    delay *= self.RETRY_BACKOFF_FACTOR
                    continue
                raise BackendConnectionError(command, f"Backend unreachable: {e}", raw_error=e)

            if response.status_code in self.RETRY_STATUS_CODES and attempt < self.max_retries:
                logger.warning(f"{command}: HTTP {response.status_code}, retry {attempt + 1}/{self.max_retries} in {delay:.1f}s")
                await asyncio.sleep(delay)
                attempt += 1
                delay *= self.RETRY_BACKOFF_FACTOR
                continue

            if response.is_error:
                raise BackendError(
                    command,
                    self._error_message(response),
                    status_code=response.status_code
                )

            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise BackendError(command, f"Invalid JSON response: {e}", status_code=response.status_code, raw_error=e)

    async def _call(self, command: str, payload: Dict[str, Any], model: Type[ModelT]) -> ModelT:
        data = await self._post(command, payload)
        try:
            return model.model_validate(data or {})
        except ValidationError as e:
            raise BackendError(command, f"Unexpected response shape: {e}", raw_error=e)

    # Generation and execution

    async def initialize_research(self, goal: str) -> ResearchInitialization:
        return await self._call("initialize_research", {"goal": goal}, ResearchInitialization)

    async def generate_research_plan(
        self,
        goal: str,
        answers: Dict[str, str],
        sources: List[ResearchSource],
        background_summary: str
    ) -> ResearchPlanResponse:
        payload = {
            "goal": goal,
            "answers": answers,
            "sources": [source.model_dump(mode="json") for source in sources],
            "background_summary": background_summary,
        }
        return await self._call("generate_research_plan", payload, ResearchPlanResponse)

    async def execute_code(self, code: str, session_id: str) -> CodeExecutionResponse:
        return await self._call(
            "execute_code",
            {"code": code, "session_id": session_id},
            CodeExecutionResponse
        )

    # Project storage

    async def create_project(self, name: str, goal: str) -> ProjectHandle:
        return await self._call("create_project", {"name": name, "goal": goal}, ProjectHandle)

    async def start_research(
        self,
        project_id: str,
        session_id: str,
        goal: str,
        answers: Dict[str, str]
    ) -> ResearchSessionResponse:
        payload = {
            "project_id": project_id,
            "session_id": session_id,
            "goal": goal,
            "answers": answers,
        }
        return await self._call("start_research", payload, ResearchSessionResponse)

    async def save_file(
        self,
        project_id: str,
        filename: str,
        content: str,
        file_type: FileType
    ) -> None:
        await self._post("save_file", {
            "project_id": project_id,
            "filename": filename,
            "content": content,
            "file_type": FileType(file_type).value,
        })

    async def add_reference(self, project_id: str, reference: Reference) -> None:
        await self._post("add_reference", {
            "project_id": project_id,
            "reference": reference.model_dump(mode="json"),
        })

    async def add_variable(self, project_id: str, variable: VariableInfo) -> None:
        await self._post("add_variable", {
            "project_id": project_id,
            "variable": variable.model_dump(mode="json"),
        })

    async def add_library(self, project_id: str, library: Library) -> None:
        await self._post("add_library", {
            "project_id": project_id,
            "library": library.model_dump(mode="json"),
        })

    async def add_question(self, project_id: str, question: Question) -> None:
        await self._post("add_question", {
            "project_id": project_id,
            "question": question.model_dump(mode="json"),
        })
