"""
Transitions Processing — Transition Dispatcher
=================================================
Operation name → rule → fresh pipeline → outcome / response.

Flow:
    1. Resolve the rule for the operation name (locked registry)
    2. Decode the request into an envelope (contracts layer)
    3. Run a NEW TransitionPipeline for this invocation
    4. Map the outcome to a CalculationResponse

The dispatcher:
- Holds only read-only collaborators (locked registry, stages)
- Never retries
- Turns an entity that cannot be serialized into a CONVERSION_ERROR
  response, passed through the error handler like any failure
- Refuses unknown operations with an UNSUPPORTED_OPERATION error
  response instead of guessing

The dispatcher does NOT:
- Persist the updated entity (the engine does)
- Speak any transport protocol
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional

from entity_transitions.contracts.messages import (
    CalculationRequest,
    CalculationResponse,
    EntityFactory,
    RequestDecodeError,
)
from entity_transitions.envelope.models import EntityEnvelope
from entity_transitions.processing.errors import (
    RegistryNotLockedError,
    UnsupportedOperationError,
)
from entity_transitions.processing.mutator import MutationStage
from entity_transitions.processing.outcomes import TransitionOutcome
from entity_transitions.processing.pipeline import ErrorHandler, TransitionPipeline
from entity_transitions.processing.rejection import (
    STAGE_MUTATION,
    ErrorInfo,
    FailureReason,
    ReasonCode,
)
from entity_transitions.processing.registry import RuleRegistry
from entity_transitions.processing.validator import ValidationStage

logger = logging.getLogger("entity_transitions.processing")


class TransitionDispatcher:
    """
    Route requests to the single rule that matches their operation.

    Usage:
        registry = RuleRegistry(rules)
        registry.lock()

        dispatcher = TransitionDispatcher(
            registry,
            entity_factories={"loan": Loan.from_dict},
        )
        response = dispatcher.handle(request)
        engine.reply(response.to_dict())
    """

    def __init__(
        self,
        registry: RuleRegistry,
        entity_factories: Optional[Mapping[str, EntityFactory]] = None,
        default_entity_factory: Optional[EntityFactory] = None,
        error_handler: Optional[ErrorHandler] = None,
        serialize_entity: Optional[Callable[[Any], Any]] = None,
    ):
        if not isinstance(registry, RuleRegistry):
            raise TypeError(
                f"Expected RuleRegistry, got {type(registry).__name__}."
            )
        if not registry.is_locked:
            raise RegistryNotLockedError()

        self._registry = registry
        self._entity_factories = dict(entity_factories or {})
        self._default_entity_factory = default_entity_factory
        self._error_handler = error_handler
        self._serialize_entity = serialize_entity
        self._validation_stage = ValidationStage()
        self._mutation_stage = MutationStage()

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    # ══════════════════════════════════════════════════════════
    # ENVELOPE-LEVEL DISPATCH
    # ══════════════════════════════════════════════════════════

    def dispatch(
        self, operation_name: str, envelope: EntityEnvelope
    ) -> TransitionOutcome:
        """
        Run the matching rule against an already-decoded envelope.

        Raises:
            UnsupportedOperationError: If no rule matches.
        """
        rule = self._registry.resolve(operation_name)
        pipeline = TransitionPipeline(
            rule=rule,
            validation_stage=self._validation_stage,
            mutation_stage=self._mutation_stage,
            error_handler=self._error_handler,
        )
        return pipeline.run(envelope)

    # ══════════════════════════════════════════════════════════
    # REQUEST-LEVEL DISPATCH
    # ══════════════════════════════════════════════════════════

    def handle(self, request: CalculationRequest) -> CalculationResponse:
        """
        Full request lifecycle.

        Unknown operations, decode failures and pipeline rejections
        all become error responses. Coverage of the operations the
        workflow sends is checked at startup (see bootstrap), so an
        unknown operation here is logged as an error.
        """
        if not isinstance(request, CalculationRequest):
            raise TypeError(
                f"Expected CalculationRequest, got {type(request).__name__}."
            )

        logger.info(
            f"Processing '{request.operation_name}' for request "
            f"{request.request_id}"
        )

        # Resolve first: unknown operations never reach decoding.
        try:
            self._registry.resolve(request.operation_name)
        except UnsupportedOperationError as exc:
            logger.error(f"Request {request.request_id} refused: {exc}")
            return CalculationResponse.error_response(
                request_id=request.request_id,
                entity_id=request.entity_id,
                code=ReasonCode.UNSUPPORTED_OPERATION,
                message=str(exc),
            )

        try:
            envelope = request.to_envelope(self._factory_for(request))
        except RequestDecodeError as exc:
            logger.info(
                f"Request {request.request_id} could not be decoded: "
                f"[{exc.code}] {exc.message}"
            )
            return CalculationResponse.error_response(
                request_id=request.request_id,
                entity_id=request.entity_id,
                code=exc.code,
                message=exc.message,
            )

        outcome = self.dispatch(request.operation_name, envelope)

        if outcome.is_success:
            try:
                return CalculationResponse.from_envelope(
                    request_id=request.request_id,
                    envelope=outcome.envelope,
                    serialize_entity=self._serialize_entity,
                )
            except Exception as exc:
                logger.warning(
                    f"Request {request.request_id}: updated entity could not "
                    f"be serialized: {type(exc).__name__}: {exc}"
                )
                reason = self._conversion_failure(
                    outcome.rule_name, outcome.envelope, exc
                )
                return CalculationResponse.from_failure(
                    request_id=request.request_id,
                    entity_id=envelope.entity_id,
                    reason=reason,
                )

        return CalculationResponse.from_failure(
            request_id=request.request_id,
            entity_id=envelope.entity_id,
            reason=outcome.reason,
        )

    def _conversion_failure(
        self, rule_name: str, envelope: EntityEnvelope, exc: Exception
    ) -> FailureReason:
        reason = FailureReason(
            code=ReasonCode.CONVERSION_ERROR,
            message=(
                f"Could not serialize entity: {type(exc).__name__}: {exc}"
            ),
            stage=STAGE_MUTATION,
            rule_name=rule_name,
        )
        if self._error_handler is None:
            return reason

        info = self._error_handler(reason, envelope)
        if info is None:
            return reason
        if not isinstance(info, ErrorInfo):
            raise TypeError(
                f"error_handler must return ErrorInfo or None, "
                f"got {type(info).__name__}."
            )
        return info.apply_to(reason)

    def _factory_for(
        self, request: CalculationRequest
    ) -> Optional[EntityFactory]:
        if request.model_name is not None:
            factory = self._entity_factories.get(request.model_name)
            if factory is not None:
                return factory
        return self._default_entity_factory
