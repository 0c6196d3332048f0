# podcast_studio/services/base.py
"""
Shared plumbing for scheduling services.

Every service owns one SQLAlchemy session and gets:
- a unit-of-work context (``transaction``) that commits or rolls back
- a per-class logger and ``log_operation`` for structured context
- timing of measured operations (in-process summary plus Prometheus
  histograms and counters), with a slow-call warning
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import RepositoryException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _empty_timing() -> Dict[str, Any]:
    return {
        "count": 0,
        "total_time": 0.0,
        "success_count": 0,
        "failure_count": 0,
        "min_time": float("inf"),
        "max_time": 0.0,
    }


class BaseService:
    """
    Base for the availability, lifecycle and sequence services.

    Subclasses call repositories inside ``self.transaction()`` and decorate
    their public commands with ``BaseService.measure_operation``.
    """

    # service class name -> operation name -> timing counters
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(type(self).__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Run a block as one unit of work on ``self.db``.

        The session is committed when the block finishes. Any exception rolls
        it back first; storage errors (``SQLAlchemyError``,
        ``RepositoryException``) are then re-raised as ``ServiceException``
        chained to the original, and domain exceptions propagate unchanged.

        Usage:
            with self.transaction():
                self.reservation_repository.create(...)
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Unit of work committed")
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Unit of work failed, rolling back: {e}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {e}") from e
        except Exception as e:
            self.logger.debug(f"Unit of work rolled back on {type(e).__name__}: {e}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time every call of the decorated method under ``operation_name``.

        Calls that raise count as failures. A call slower than
        ``settings.slow_operation_threshold_s`` is logged at WARNING.

        Usage:
            @BaseService.measure_operation("confirm_reservation")
            def confirm(self, reservation_id, admin_id):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                succeeded = False
                error_type = None
                try:
                    outcome = func(self, *args, **kwargs)
                    succeeded = True
                    return outcome
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - started
                    self._record_metric(operation_name, elapsed, succeeded)
                    prometheus_metrics.record_service_operation(
                        service=type(self).__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if succeeded else "error",
                        error_type=error_type,
                    )
                    if elapsed > settings.slow_operation_threshold_s:
                        self.logger.warning(
                            f"{operation_name} was slow: {elapsed:.2f}s "
                            f"(threshold {settings.slow_operation_threshold_s:.2f}s)"
                        )

            setattr(wrapper, "_operation_name", operation_name)
            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """INFO line for ``operation``; ``context`` goes into the record's extra fields."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        per_service = BaseService._class_metrics.setdefault(type(self).__name__, {})
        timing = per_service.setdefault(operation, _empty_timing())

        timing["count"] += 1
        timing["total_time"] += elapsed
        timing["min_time"] = min(timing["min_time"], elapsed)
        timing["max_time"] = max(timing["max_time"], elapsed)
        timing["success_count" if success else "failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Timing summary of this service class, keyed by operation name.

        Each entry has count, avg/min/max time in seconds, success_rate and
        failure_count. Operations never called are absent.
        """
        summary: Dict[str, Any] = {}
        for operation, timing in BaseService._class_metrics.get(type(self).__name__, {}).items():
            calls = timing["count"]
            if not calls:
                continue
            summary[operation] = {
                "count": calls,
                "avg_time": timing["total_time"] / calls,
                "min_time": timing["min_time"],
                "max_time": timing["max_time"],
                "success_rate": timing["success_count"] / calls,
                "failure_count": timing["failure_count"],
            }
        return summary

    def reset_metrics(self) -> None:
        """Drop the timing counters of this service class."""
        BaseService._class_metrics.pop(type(self).__name__, None)
        self.logger.info(f"Metrics cleared for {type(self).__name__}")
