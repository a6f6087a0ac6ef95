"""Application services for Verum.

Reader side: ChainTraversalService and ChainReconstructionService.
Writer side: TransactionSubmitter, PublishStateMachine and
SocialActionService.
"""

from verum.application.services.base import LoggingMixin
from verum.application.services.chain_reconstruction_service import (
    ChainReconstructionService,
)
from verum.application.services.chain_traversal_service import (
    ChainTraversalService,
    previous_link,
)
from verum.application.services.publish_state_machine import (
    TERMINAL_PHASES,
    PublishStateMachine,
)
from verum.application.services.social_action_service import SocialActionService
from verum.application.services.transaction_submitter import (
    SubmissionResult,
    TransactionSubmitter,
    kas_to_sompi,
)

__all__: list[str] = [
    "TERMINAL_PHASES",
    "ChainReconstructionService",
    "ChainTraversalService",
    "LoggingMixin",
    "PublishStateMachine",
    "SocialActionService",
    "SubmissionResult",
    "TransactionSubmitter",
    "kas_to_sompi",
    "previous_link",
]
