"""Detection manager: owns the loaded dataset and turns evidence into results."""
from __future__ import annotations

import logging
import typing as t
import weakref

from .config import ManagerConfig
from .encoding import (
    build_property_list,
    canonical_path_cstring,
    new_exception,
    verify_data_file_path,
    verify_exception,
)
from .engine import Engine
from .errors import EngineStatusError, Operation, PreconditionError
from .evidence import Evidence, EvidencePair
from .results import ResultView
from .status import StatusCode, describe_status

log = logging.getLogger("hashdetect.manager")


class Manager:
    """Loaded dataset plus the engine calls that run detections against it.

    Not safe for concurrent `detect` calls: the engine reuses working state
    inside the dataset while matching. Use one manager per worker, or hold a
    lock around `detect`.

    Example:
        with Manager(ManagerConfig(Path("data.hash"), (PropertyName.IsMobile,))) as manager:
            with manager.detect([EvidenceName.UserAgent.with_value(ua)]) as result:
                result.get_value_as_string(PropertyName.IsMobile)
    """

    def __init__(self, config: ManagerConfig, engine: t.Optional[Engine] = None):
        verify_data_file_path(config.data_file_path)
        path_bytes = canonical_path_cstring(config.data_file_path)

        tokens = config.property_tokens()
        properties = None
        if tokens is not None:
            properties = build_property_list(tokens)

        if engine is None:
            from .native import NativeEngine

            engine = NativeEngine()

        self.config = config
        self.engine = engine
        self._results: "weakref.WeakSet[ResultView]" = weakref.WeakSet()

        resource = engine.new_manager()
        exception = new_exception()
        # `properties` and `path_bytes` stay referenced until the call returns
        try:
            status = engine.init_manager_from_file(resource, config.engine, properties, path_bytes, exception)
            verify_exception(engine, exception, Operation.INIT_MANAGER)
            if status != StatusCode.SUCCESS:
                raise EngineStatusError(Operation.INIT_MANAGER, status, describe_status(status))
        except BaseException:
            # the engine may have allocated part of the dataset before failing
            engine.manager_free(resource)
            raise

        self.resource = resource
        self._finalizer = weakref.finalize(self, engine.manager_free, resource)
        log.info(
            "loaded dataset %s (profile=%s, properties=%s)",
            path_bytes.decode("utf-8"),
            config.engine.profile.name,
            len(tokens) if tokens is not None else "all",
        )

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def open_results(self) -> int:
        return sum(1 for r in self._results if not r.closed)

    def detect(self, evidence_data: t.Sequence[EvidencePair]) -> ResultView:
        """Run a detection for the given (key, value) evidence pairs.

        Raises PreconditionError for an empty sequence without calling the
        engine. The evidence collection built here is released before this
        returns; the returned view does not depend on it.
        """
        if self.closed:
            raise PreconditionError(Operation.CREATE_EVIDENCE, "manager has been released")
        evidence_data = list(evidence_data)
        if len(evidence_data) == 0:
            raise PreconditionError(Operation.CREATE_EVIDENCE, "Evidence data must contain at least one item")

        log.debug("detect with %d evidence item(s)", len(evidence_data))
        with Evidence.create(self.engine, len(evidence_data)) as evidence:
            evidence.extend(evidence_data)
            result = ResultView.create(self, evidence)
        self._results.add(result)
        return result

    def close(self) -> None:
        """Release the dataset. Every result view from this manager must be closed first."""
        if self.closed:
            return
        open_count = self.open_results()
        if open_count:
            raise PreconditionError(
                Operation.RELEASE_MANAGER,
                f"{open_count} result view(s) still open",
            )
        self._finalizer()
        log.debug("released manager")

    def __enter__(self) -> "Manager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None and self.open_results():
            # leave the caller's exception alone; the finalizer releases the
            # dataset once the open views are dropped
            log.debug("leaving manager open: %d result view(s) outlive a failed block", self.open_results())
            return
        self.close()
