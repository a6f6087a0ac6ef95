"""Social action service - single-transaction protocol actions.

Profiles, posts, comments, likes, subscriptions and notes each fit in
one transaction. Every action links into the author's chains, is
validated before anything is sent, and pays the kind's fee to its
recipient: the target for subscriptions, the target's author for
comments and likes, and the author itself for everything else.
"""

from __future__ import annotations

from verum.application.ports.time_authority import TimeAuthorityProtocol
from verum.application.services.base import LoggingMixin
from verum.application.services.chain_traversal_service import ChainTraversalService
from verum.application.services.transaction_submitter import TransactionSubmitter
from verum.domain.errors.chain import SelfSubscriptionError
from verum.domain.errors.payload import PayloadValidationError
from verum.domain.errors.publish import UnauthenticatedError
from verum.domain.payloads import Payload, payload_kind
from verum.domain.services.payload_builder import PayloadBuilder
from verum.domain.services.payload_validator import PayloadValidator


class SocialActionService(LoggingMixin):
    """Publishes single-transaction actions for the connected author.

    Example:
        >>> social = SocialActionService(submitter, traversal, time_authority)
        >>> tx_id = await social.post("hello verum")
    """

    def __init__(
        self,
        submitter: TransactionSubmitter,
        traversal: ChainTraversalService,
        time_authority: TimeAuthorityProtocol,
        builder: PayloadBuilder | None = None,
        validator: PayloadValidator | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            submitter: Submits the transactions.
            traversal: Resolves the author's chain heads.
            time_authority: Clock for payload timestamps and validation.
            builder: Payload builder. Defaults to one using time_authority.
            validator: Payload validator. Defaults to one using time_authority.
        """
        self._submitter = submitter
        self._traversal = traversal
        self._builder = builder or PayloadBuilder(clock=time_authority.now)
        self._validator = validator or PayloadValidator(clock=time_authority.now)
        self._init_logger(component="publisher")

    async def create_profile(self, nickname: str, avatar: str | None = None) -> str:
        """Publish a start transaction carrying the author's profile."""
        address = await self._author_address()
        payload = self._builder.start(nickname, avatar)
        return await self._send(payload, address)

    async def post(self, content: str) -> str:
        """Publish a short post."""
        address = await self._author_address()
        pointers = await self._traversal.latest_pointers(address)
        return await self._send(self._builder.post(content, pointers), address)

    async def comment(
        self, target_id: str, recipient_address: str, content: str
    ) -> str:
        """Comment on a post or story, paying the target's author."""
        address = await self._author_address()
        pointers = await self._traversal.latest_pointers(address)
        payload = self._builder.comment(target_id, content, pointers)
        return await self._send(payload, recipient_address)

    async def like(self, target_id: str, recipient_address: str) -> str:
        """Like a post or story, paying the target's author."""
        address = await self._author_address()
        pointers = await self._traversal.latest_pointers(address)
        payload = self._builder.like(target_id, pointers)
        return await self._send(payload, recipient_address)

    async def subscribe(self, target: str) -> str:
        """Subscribe to target, paying the target.

        Raises:
            SelfSubscriptionError: If target is the author's own address.
        """
        address = await self._author_address()
        if target.strip() == address:
            raise SelfSubscriptionError(address)
        pointers = await self._traversal.latest_pointers(address)
        payload = self._builder.subscribe(target, pointers)
        return await self._send(payload, payload.content)

    async def unsubscribe(self, target: str) -> str:
        """Unsubscribe from target."""
        address = await self._author_address()
        if target.strip() == address:
            raise SelfSubscriptionError(address)
        pointers = await self._traversal.latest_pointers(address)
        return await self._send(self._builder.unsubscribe(target, pointers), address)

    async def note(self, ciphertext: str) -> str:
        """Publish an already encrypted private note."""
        address = await self._author_address()
        pointers = await self._traversal.latest_pointers(address)
        return await self._send(self._builder.note(ciphertext, pointers), address)

    async def _author_address(self) -> str:
        address = await self._submitter.sender.get_address()
        if not address:
            raise UnauthenticatedError()
        return address

    async def _send(self, payload: Payload, recipient_address: str) -> str:
        """Validate and submit one payload."""
        kind = payload_kind(payload)
        log = self._log_operation("send", kind=kind.value)
        issues = self._validator.validate(payload)
        if issues:
            log.info("payload_rejected", codes=[issue.code for issue in issues])
            raise PayloadValidationError(issues)
        result = await self._submitter.submit(payload, recipient_address)
        log.info("action_published", tx_id=result.tx_id)
        return result.tx_id
