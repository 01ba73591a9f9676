"""
Batch runner: parameterize a set of resources and extract them concurrently.

Parameters are checked and substituted before any fetch, so a missing or
surplus parameter never costs a network call. After that every resource runs
as its own task; results come back in input order no matter which fetch
finishes first.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

import structlog

from rvp.config.config import Settings
from rvp.exceptions import MissingParametersError, ParamCountMismatchError, ParameterError, RvpError
from rvp.schema.models import Resource

from .extractor import Extractor
from .fetcher import HtmlFetcher
from .validation import validate_resources
from .values import ParsedValue

logger = structlog.get_logger(__name__)

DEFAULT_IGNORE_TOKEN = "_"


@dataclass
class ResourceResult:
    """Outcome of one resource: its values, or the error that discarded them."""

    index: int
    url: str
    values: List[ParsedValue] = field(default_factory=list)
    error: Optional[RvpError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "data": [value.to_dict() for value in self.values]}
        if self.error is not None:
            data["error"] = str(self.error)
        return data


@dataclass
class BatchResult:
    batch_id: str
    results: List[ResourceResult]
    duration: float = 0.0

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    @property
    def ok(self) -> bool:
        return self.failed == 0


def parameterize(
    resources: Sequence[Resource],
    params: Optional[Sequence[str]] = None,
    shared: Optional[str] = None,
    *,
    ignore_token: str = DEFAULT_IGNORE_TOKEN,
) -> List[Resource]:
    """
    Substitute URL parameters into ``resources``.

    Args:
        resources: Resources in config order
        params: Positional mode, one entry per resource; ``ignore_token``
            marks entries for resources without a placeholder
        shared: Shared mode, one value for every resource that needs one
        ignore_token: Sentinel for positional entries that are not needed

    Returns:
        New resources with every placeholder substituted

    Raises:
        ParameterError: both modes were given
        ParamCountMismatchError: positional count differs from resource count
        MissingParametersError: a resource with a placeholder got no value
    """
    if params is not None and shared is not None:
        raise ParameterError("positional and shared parameters are mutually exclusive")

    needing = [index for index, resource in enumerate(resources) if resource.needs_parameter]
    if not needing:
        if params or shared is not None:
            logger.debug("Parameters given but no resource needs one, ignoring")
        return list(resources)

    if shared is not None:
        return [resource.with_parameter(shared) if resource.needs_parameter else resource for resource in resources]

    if not params:
        raise MissingParametersError(needing)

    if len(params) != len(resources):
        raise ParamCountMismatchError(expected=len(resources), got=len(params))

    missing = [index for index in needing if params[index] == ignore_token]
    if missing:
        raise MissingParametersError(missing)

    return [
        resource.with_parameter(param) if resource.needs_parameter else resource
        for resource, param in zip(resources, params)
    ]


class BatchRunner:
    """
    Runs an :class:`Extractor` across many resources.

    Features:
    - Fail-fast parameter checks before any fetch
    - Bounded fan-out via a semaphore
    - Input-ordered results
    - Partial success by default, or first-failure-aborts-all with ``fail_fast``
    """

    def __init__(
        self,
        extractor: Extractor,
        *,
        max_concurrency: int = 10,
        fail_fast: bool = False,
        ignore_token: str = DEFAULT_IGNORE_TOKEN,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.extractor = extractor
        self.max_concurrency = max_concurrency
        self.fail_fast = fail_fast
        self.ignore_token = ignore_token
        self.logger = structlog.get_logger(self.__class__.__name__)

    async def run(
        self,
        resources: Sequence[Resource],
        params: Optional[Sequence[str]] = None,
        shared: Optional[str] = None,
    ) -> BatchResult:
        """
        Parameterize, validate and extract ``resources``.

        Raises:
            ParameterError: before any fetch, see :func:`parameterize`
            ConfigError: before any fetch, on a malformed selector or URL
            RvpError: the first resource failure, only when ``fail_fast`` is set
        """
        prepared = parameterize(resources, params, shared, ignore_token=self.ignore_token)
        validate_resources(prepared)

        batch_id = uuid4().hex[:12]
        semaphore = asyncio.Semaphore(self.max_concurrency)
        start_time = time.monotonic()

        with structlog.contextvars.bound_contextvars(batch_id=batch_id):
            self.logger.info("Batch started", resources=len(prepared), max_concurrency=self.max_concurrency)

            if self.fail_fast:
                results = await self._run_fail_fast(prepared, semaphore)
            else:
                results = await asyncio.gather(
                    *(self._run_one(index, resource, semaphore) for index, resource in enumerate(prepared))
                )

            batch = BatchResult(batch_id=batch_id, results=list(results), duration=time.monotonic() - start_time)
            self.logger.info(
                "Batch finished",
                succeeded=batch.succeeded,
                failed=batch.failed,
                duration=round(batch.duration, 3),
            )
        return batch

    async def _run_fail_fast(
        self, resources: Sequence[Resource], semaphore: asyncio.Semaphore
    ) -> List[ResourceResult]:
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [
                    tg.create_task(self._run_one(index, resource, semaphore))
                    for index, resource in enumerate(resources)
                ]
        except ExceptionGroup as eg:
            failures = eg.subgroup(RvpError)
            if failures is None:
                raise
            first = failures.exceptions[0]
            self.logger.error("Batch aborted", error=str(first), failures=len(failures.exceptions))
            raise first from None
        return [task.result() for task in tasks]

    async def _run_one(self, index: int, resource: Resource, semaphore: asyncio.Semaphore) -> ResourceResult:
        async with semaphore:
            try:
                values = await self.extractor.extract(resource)
            except RvpError as e:
                if self.fail_fast:
                    raise
                self.logger.warning("Resource failed", index=index, url=resource.url, error=str(e))
                return ResourceResult(index=index, url=resource.url, error=e)
        return ResourceResult(index=index, url=resource.url, values=values)


async def run_batch(
    resources: Sequence[Resource],
    settings: Optional[Settings] = None,
    params: Optional[Sequence[str]] = None,
    shared: Optional[str] = None,
) -> BatchResult:
    """Run a batch with a fetcher and extractor built from ``settings``."""
    settings = settings or Settings()

    async with HtmlFetcher(settings.fetch) as fetcher:
        runner = BatchRunner(
            Extractor(fetcher, settings.extraction),
            max_concurrency=settings.fetch.max_concurrency,
            fail_fast=settings.batch.fail_fast,
            ignore_token=settings.extraction.ignore_token,
        )
        return await runner.run(resources, params, shared)
