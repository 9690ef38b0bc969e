"""SAS token issuance — ad-hoc tokens and policy-backed tokens.

Decision procedure
------------------
* **No policy name** → sign an ad-hoc "process messages, never expires" rule.
  The queue's policy list is neither read nor written.
* **Policy name given** → read the queue's policy list, then reconcile:

  ==========================  ==========================  ===========
  policy on queue             ``overwrite``               writes
  ==========================  ==========================  ===========
  absent                      any                         1 (add)
  present                     ``False``                   0 (reuse)
  present                     ``True``                    1 (replace)
  ==========================  ==========================  ===========

  and sign a token that refers to the stored policy by name.

Concurrency
-----------
Reconciliation is read-then-write with no compare-and-swap: the queue ACL API
offers no ETag condition.  Two writers racing on the same queue may overwrite
each other's policy list.  Without a concurrent writer a policy name maps to
exactly one policy after ``issue`` returns.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from queue_sas.core.exceptions import ResolutionError
from queue_sas.core.types import AccessPolicy, IssueOutcome, IssueResult
from queue_sas.utils.security import mask_sas_token
from queue_sas.utils.validation import MAX_POLICY_ID_LEN, validate_policy_id

if TYPE_CHECKING:
    from queue_sas.handles.base import QueueHandle

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Issue SAS tokens for a queue handle.

    The issuer is stateless; one instance can serve any number of calls.

    Example::

        issuer = TokenIssuer()
        async with resolver.resolve(identity, "orders") as handle:
            result = await issuer.issue(handle, policy_name="consumer")
        print(result.queue_url, result.token, result.outcome)
    """

    async def issue(
        self,
        handle: QueueHandle,
        policy_name: str | None = None,
        overwrite: bool = False,
    ) -> IssueResult:
        """Return a SAS token for *handle*'s queue.

        Args:
            handle: Key-authenticated queue handle.
            policy_name: Stored access policy to back the token.  ``None`` or
                ``""`` issues an ad-hoc token.
            overwrite: Replace the policy when it already exists.

        Returns:
            The token together with the queue address and the branch taken.

        Raises:
            ResolutionError: When *policy_name* is longer than the service allows.
            RemoteReadError: When the policy list cannot be fetched.
            RemoteWriteError: When the policy list cannot be stored.
            SigningError: When the handle cannot sign.
        """
        if not policy_name:
            return self._issue_adhoc(handle)
        return await self._issue_persistent(handle, policy_name, overwrite)

    ###############
    # Ad-hoc path #
    ###############

    def _issue_adhoc(self, handle: QueueHandle) -> IssueResult:
        rule = AccessPolicy.process_messages()
        token = handle.sign(rule)
        logger.debug("Issued ad-hoc token for queue %s: %s", handle.queue_name, mask_sas_token(token))
        return IssueResult(
            queue_name=handle.queue_name,
            queue_url=handle.queue_url,
            token=token,
            outcome=IssueOutcome.ADHOC,
            policy=rule,
        )

    ###################
    # Persistent path #
    ###################

    async def _issue_persistent(
        self,
        handle: QueueHandle,
        policy_name: str,
        overwrite: bool,
    ) -> IssueResult:
        if not validate_policy_id(policy_name):
            raise ResolutionError(
                reason=f"Policy name must be at most {MAX_POLICY_ID_LEN} characters.",
                field="policy_name",
            )

        logger.info(
            "Generating SAS token for %s queue with policy %s...",
            handle.queue_name,
            policy_name,
        )
        policies = await handle.read_policies()
        outcome = reconcile(policies, policy_name, overwrite)
        if outcome != IssueOutcome.REUSED:
            await handle.write_policies(policies)

        token = handle.sign(policy_name)
        logger.debug(
            "Issued policy-backed token for queue %s: %s",
            handle.queue_name,
            mask_sas_token(token),
        )
        return IssueResult(
            queue_name=handle.queue_name,
            queue_url=handle.queue_url,
            token=token,
            outcome=outcome,
            policy_name=policy_name,
            policy=policies[policy_name],
        )


def reconcile(
    policies: dict[str, AccessPolicy],
    policy_name: str,
    overwrite: bool,
) -> IssueOutcome:
    """Bring *policy_name* in *policies* to its issued state, in place.

    Returns:
        ``CREATED`` or ``OVERWRITTEN`` when *policies* changed and must be
        written back; ``REUSED`` when it is untouched.
    """
    if policy_name in policies:
        if not overwrite:
            logger.info("Policy %s already exists. Reusing existing token...", policy_name)
            return IssueOutcome.REUSED

        logger.info("Policy %s already exists. Overwriting with new token...", policy_name)
        del policies[policy_name]
        policies[policy_name] = AccessPolicy.process_messages()
        return IssueOutcome.OVERWRITTEN

    policies[policy_name] = AccessPolicy.process_messages()
    logger.info("Policy %s created.", policy_name)
    return IssueOutcome.CREATED


__all__ = ["TokenIssuer", "reconcile"]
