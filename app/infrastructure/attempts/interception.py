"""Interception layer for retryable operations.

Operations are wrapped explicitly at startup: each operation id is bound to
an OperationBinding that names which call arguments hold the job context
and the resource (or resource collection) and which gate steps apply.
The wrapper then runs check -> maybe execute -> update around the business
call.

Example:
    registry = BindingRegistry()
    registry.register(
        OperationBinding(
            operation_id="checkout_visit",
            context=ArgumentRole("context"),
            resource=ArgumentRole("visit"),
            check=InterceptionMode.REACTIVE,
            update=True,
        )
    )
    interceptor = AttemptInterceptor(evaluator, registry)

    @interceptor.intercept("checkout_visit")
    def checkout_visit(context, visit):
        ...
"""

import functools
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from infrastructure.attempts.errors import AttemptGateError, BindingError
from infrastructure.attempts.models import AttemptOutcome, Decision, RetryJobContext
from infrastructure.attempts.policy import RetryPolicyEvaluator, describe_error
from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult

logger = get_module_logger()


class _Skipped:
    """Sentinel type returned by an intercepted call that was not invoked."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SKIPPED"

    def __bool__(self) -> bool:
        return False


SKIPPED = _Skipped()


def is_skipped(value: Any) -> bool:
    """True if an intercepted call returned the skip sentinel."""
    return value is SKIPPED


def detect_operation_failure(value: Any) -> Optional[str]:
    """Default failure detector for returned values.

    Operations in this codebase report failures as unsuccessful
    OperationResult values instead of raising. Any other value is a success.

    Returns:
        Error detail for a failed result, None otherwise
    """
    if isinstance(value, OperationResult) and not value.is_success:
        return value.describe()
    return None


class InterceptionMode(Enum):
    """Where the eligibility check happens.

    Values:
        PROACTIVE: Filter the whole resource collection before the call
        REACTIVE: Gate a single resource right before the call
    """

    PROACTIVE = "proactive"
    REACTIVE = "reactive"


@dataclass(frozen=True)
class ArgumentRole:
    """Locates one argument of an operation call.

    Looked up by keyword name first, then by positional index. When no
    position is given it is resolved from the wrapped function's signature.
    """

    name: str
    position: Optional[int] = None

    def resolve(self, func: Callable) -> "ArgumentRole":
        """Return a copy with the positional index taken from func."""
        if self.position is not None:
            return self
        try:
            parameters = list(inspect.signature(func).parameters.values())
        except (TypeError, ValueError):
            return self
        for index, parameter in enumerate(parameters):
            if parameter.name != self.name:
                continue
            if parameter.kind in (
                inspect.Parameter.POSITIONAL_ONLY,
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
            ):
                return ArgumentRole(self.name, index)
            return self
        raise BindingError(
            f"Operation {getattr(func, '__qualname__', func)!r} has no argument {self.name!r}"
        )

    def extract(self, args: Sequence[Any], kwargs: Dict[str, Any]) -> Any:
        if self.name in kwargs:
            return kwargs[self.name]
        if self.position is not None and self.position < len(args):
            return args[self.position]
        raise BindingError(f"Argument {self.name!r} was not passed to the operation")

    def replace(
        self, args: Sequence[Any], kwargs: Dict[str, Any], value: Any
    ) -> Tuple[Tuple[Any, ...], Dict[str, Any]]:
        """Return new (args, kwargs) with this argument set to value."""
        if self.name in kwargs:
            new_kwargs = dict(kwargs)
            new_kwargs[self.name] = value
            return tuple(args), new_kwargs
        if self.position is not None and self.position < len(args):
            new_args = list(args)
            new_args[self.position] = value
            return tuple(new_args), dict(kwargs)
        raise BindingError(f"Argument {self.name!r} was not passed to the operation")


def _as_role(value: Any) -> Optional[ArgumentRole]:
    if value is None or isinstance(value, ArgumentRole):
        return value
    if isinstance(value, str):
        return ArgumentRole(value)
    raise BindingError(f"Expected an ArgumentRole or argument name, got {value!r}")


@dataclass(frozen=True)
class OperationBinding:
    """Explicit registration of one retryable operation.

    Attributes:
        operation_id: Unique name of the operation
        context: Argument holding the RetryJobContext of the call
        resource: Argument holding a single resource
        resources: Argument holding a resource collection
        check: Eligibility check mode, or None for update-only
        update: Record an attempt after every real invocation
        failure_detector: Maps a returned value to error detail or None
    """

    operation_id: str
    context: ArgumentRole
    resource: Optional[ArgumentRole] = None
    resources: Optional[ArgumentRole] = None
    check: Optional[InterceptionMode] = None
    update: bool = False
    failure_detector: Callable[[Any], Optional[str]] = field(
        default=detect_operation_failure, compare=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.operation_id, str) or not self.operation_id.strip():
            raise BindingError("operation_id must be a non-empty string")
        object.__setattr__(self, "context", _as_role(self.context))
        if self.context is None:
            raise BindingError(
                f"Binding {self.operation_id!r} requires a context argument"
            )
        object.__setattr__(self, "resource", _as_role(self.resource))
        object.__setattr__(self, "resources", _as_role(self.resources))
        if self.check is not None:
            try:
                object.__setattr__(self, "check", InterceptionMode(self.check))
            except ValueError as e:
                raise BindingError(
                    f"Binding {self.operation_id!r} has unknown check mode {self.check!r}"
                ) from e

        if self.resource is not None and self.resources is not None:
            raise BindingError(
                f"Binding {self.operation_id!r} sets both resource and resources"
            )
        if self.check is None and not self.update:
            raise BindingError(
                f"Binding {self.operation_id!r} has neither check nor update"
            )
        if self.check == InterceptionMode.PROACTIVE and self.resources is None:
            raise BindingError(
                f"Proactive binding {self.operation_id!r} requires a resources argument"
            )
        if self.check == InterceptionMode.REACTIVE and self.resource is None:
            raise BindingError(
                f"Reactive binding {self.operation_id!r} requires a resource argument"
            )
        if self.update and self.resource is None and self.resources is None:
            raise BindingError(
                f"Update binding {self.operation_id!r} requires a resource or resources argument"
            )

    @property
    def role(self) -> ArgumentRole:
        return self.resource if self.resource is not None else self.resources

    @property
    def is_collection(self) -> bool:
        return self.resources is not None


class BindingRegistry:
    """Table of operation_id -> OperationBinding, filled at startup."""

    def __init__(self) -> None:
        self._bindings: Dict[str, OperationBinding] = {}

    def register(self, binding: OperationBinding) -> OperationBinding:
        if binding.operation_id in self._bindings:
            raise BindingError(
                f"Operation {binding.operation_id!r} is already registered"
            )
        self._bindings[binding.operation_id] = binding
        logger.debug(
            "operation_binding_registered",
            operation_id=binding.operation_id,
            check=binding.check.value if binding.check else None,
            update=binding.update,
        )
        return binding

    def get(self, operation_id: str) -> OperationBinding:
        try:
            return self._bindings[operation_id]
        except KeyError:
            raise BindingError(f"No binding registered for {operation_id!r}") from None

    def operation_ids(self) -> List[str]:
        return list(self._bindings)

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)


@dataclass(frozen=True)
class SkipReport:
    """Resources withheld from one intercepted call."""

    operation_id: str
    job_id: str
    skipped_ids: Tuple[str, ...]


SkipListener = Callable[[SkipReport], None]


def _same_collection_type(original: Any, items: List[Any]) -> Any:
    if isinstance(original, tuple):
        return tuple(items)
    return items


class AttemptInterceptor:
    """Wraps registered operations with attempt gating and recording.

    Attributes:
        evaluator: RetryPolicyEvaluator used for checks and updates
        registry: BindingRegistry resolving operation ids
    """

    def __init__(
        self,
        evaluator: RetryPolicyEvaluator,
        registry: Optional[BindingRegistry] = None,
        skip_listeners: Iterable[SkipListener] = (),
    ) -> None:
        self.evaluator = evaluator
        self.registry = registry if registry is not None else BindingRegistry()
        self._skip_listeners: List[SkipListener] = list(skip_listeners)

    def add_skip_listener(self, callback: SkipListener) -> None:
        self._skip_listeners.append(callback)

    def wrap(self, operation_id: str, func: Callable) -> Callable:
        """Wrap func with the gate steps of its registered binding.

        Raises:
            BindingError: If the operation is not registered, a bound
                argument does not exist on func, or func is a coroutine
                function
        """
        binding = self.registry.get(operation_id)
        if inspect.iscoroutinefunction(func):
            raise BindingError(
                f"Operation {operation_id!r} is a coroutine function; "
                "only synchronous operations can be intercepted"
            )
        context_role = binding.context.resolve(func)
        role = binding.role.resolve(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return self._invoke(binding, context_role, role, func, args, kwargs)

        wrapper.operation_id = operation_id
        return wrapper

    def intercept(self, operation_id: str) -> Callable[[Callable], Callable]:
        """Decorator form of wrap()."""

        def decorator(func: Callable) -> Callable:
            return self.wrap(operation_id, func)

        return decorator

    def _invoke(
        self,
        binding: OperationBinding,
        context_role: ArgumentRole,
        role: ArgumentRole,
        func: Callable,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
    ) -> Any:
        context = context_role.extract(args, kwargs)
        if not isinstance(context, RetryJobContext):
            raise BindingError(
                f"Argument {context_role.name!r} of {binding.operation_id!r} "
                f"is not a RetryJobContext: {context!r}"
            )

        if binding.is_collection:
            original = role.extract(args, kwargs)
            if binding.check == InterceptionMode.PROACTIVE:
                partition = self.evaluator.filter_eligible(context, original)
                if partition.skipped:
                    self._report_skips(binding, context, partition.skipped)
                    if not partition.eligible:
                        logger.info(
                            "operation_skipped_no_eligible_resources",
                            operation_id=binding.operation_id,
                            job_id=context.job_id,
                        )
                        return SKIPPED
                attempted = partition.eligible
            else:
                attempted = list(original)
            if not isinstance(original, (list, tuple)) or len(attempted) != len(original):
                args, kwargs = role.replace(
                    args, kwargs, _same_collection_type(original, attempted)
                )
        else:
            resource = role.extract(args, kwargs)
            if binding.check == InterceptionMode.REACTIVE:
                if self.evaluator.check_one(context, resource) == Decision.SKIP:
                    self._report_skips(binding, context, [resource])
                    return SKIPPED
            attempted = [resource]

        if not binding.update:
            return func(*args, **kwargs)

        # A bad key aborts the call before the operation runs.
        for resource in attempted:
            self.evaluator.resource_key(resource)

        try:
            result = func(*args, **kwargs)
        except BaseException as e:
            self._record_after_exception(binding, context, attempted, e)
            raise

        error_detail = binding.failure_detector(result)
        if error_detail is None:
            self._record_all(context, attempted, AttemptOutcome.SUCCESS)
        else:
            self._record_all(context, attempted, AttemptOutcome.FAILURE, error_detail)
        return result

    def _record_all(
        self,
        context: RetryJobContext,
        resources: List[Any],
        outcome: AttemptOutcome,
        error: Any = None,
    ) -> None:
        for resource in resources:
            self.evaluator.record_outcome(context, resource, outcome, error)

    def _record_after_exception(
        self,
        binding: OperationBinding,
        context: RetryJobContext,
        resources: List[Any],
        error: BaseException,
    ) -> None:
        # The business exception always wins over a ledger failure.
        try:
            self._record_all(context, resources, AttemptOutcome.FAILURE, error)
        except AttemptGateError as gate_error:
            logger.error(
                "attempt_record_failed_after_operation_error",
                operation_id=binding.operation_id,
                job_id=context.job_id,
                error=str(gate_error),
                operation_error=describe_error(error),
            )

    def _report_skips(
        self, binding: OperationBinding, context: RetryJobContext, skipped: List[Any]
    ) -> None:
        report = SkipReport(
            operation_id=binding.operation_id,
            job_id=context.job_id,
            skipped_ids=tuple(self.evaluator.resource_key(r) for r in skipped),
        )
        logger.info(
            "resources_skipped",
            operation_id=report.operation_id,
            job_id=report.job_id,
            skipped_ids=list(report.skipped_ids),
            skipped_count=len(report.skipped_ids),
        )
        for listener in self._skip_listeners:
            listener(report)
