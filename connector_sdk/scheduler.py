"""
Work Item Scheduler for connector_sdk

Combines requests, the date range, the ad accounts and the resume state of
a run into the exact, ordered list of work items still to execute.

Scheduling happens in two phases:

Phase A (interleave) pairs requests with dates, honoring the resume state:
- no resume filter: every request in order; dimensions once without a
  date, metrics once per date
- resume date (not the 'dimension' sentinel): dimensions are skipped,
  requests before the resume request id (if any) are skipped, and dates
  before the resume date are skipped until the first pair is emitted
- resume request id only: requests before the matching id are skipped,
  dimensions included once the match has been reached

Phase B (fan_out) attaches ad accounts: an account named explicitly on the
request wins; otherwise the pair is repeated for every configured account;
with no accounts at all a single item without account is produced.

The scheduler is a pure function of its inputs. It performs no I/O and
keeps no state between calls.

Usage:
    from connector_sdk.scheduler import WorkItemScheduler

    items = WorkItemScheduler().schedule(requests, dates, accounts, resume)

    # or straight from a loaded configuration and state
    from connector_sdk.scheduler import get_work_items
    items = get_work_items(config, state)
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from connector_sdk.accounts import get_normalized_ad_accounts, normalize_ad_accounts
from connector_sdk.dates import get_date_range_from_config, parse_date
from connector_sdk.errors import InvalidResumeDate
from connector_sdk.models import AdAccount, Request, ResumeState, WorkItem
from connector_sdk.requests import get_requests

logger = logging.getLogger(__name__)

RequestDate = Tuple[Request, Optional[date]]


class WorkItemScheduler:
    """
    Expands requests x dates x accounts into ordered work items.

    Request order is always the configuration order and dates are always
    taken in the order given (ascending); no other sort is applied.
    """

    def schedule(
        self,
        requests: Sequence[Request],
        dates: Iterable[date],
        accounts: Iterable[AdAccount],
        resume: Optional[ResumeState] = None,
    ) -> List[WorkItem]:
        """
        Produce the work items remaining for a run.

        Args:
            requests: Enabled requests, in configuration order
            dates: Days of the run, ascending
            accounts: Configured ad accounts, in configuration order
            resume: Position reached by a previous run (None for a fresh run)

        Returns:
            Ordered list of WorkItem (empty when nothing is left to do)

        Raises:
            InvalidResumeDate: If resume.date is set but not a valid date
        """
        pairs = self.interleave(requests, dates, resume)
        return self.fan_out(pairs, normalize_ad_accounts(accounts))

    # ============================================
    # Phase A: requests x dates
    # ============================================

    def interleave(
        self,
        requests: Sequence[Request],
        dates: Iterable[date],
        resume: Optional[ResumeState] = None,
    ) -> List[RequestDate]:
        """
        Pair requests with dates according to the resume state.

        Returns:
            Ordered list of (request, date) pairs; date is None for dimensions
        """
        resume = resume or ResumeState()
        days = tuple(dates)

        if resume.has_date_filter:
            return self._resume_from_date(requests, days, resume)
        if resume.has_request_filter:
            return self._resume_from_request(requests, days, resume.request_id)
        return self._all_pairs(requests, days)

    def _all_pairs(
        self,
        requests: Sequence[Request],
        days: Tuple[date, ...],
    ) -> List[RequestDate]:
        pairs: List[RequestDate] = []
        for request in requests:
            pairs.extend(self._expand(request, days))
        return pairs

    def _resume_from_date(
        self,
        requests: Sequence[Request],
        days: Tuple[date, ...],
        resume: ResumeState,
    ) -> List[RequestDate]:
        floor = parse_date(resume.date, InvalidResumeDate)

        # Without a request id filter, every request is already in the window
        started = not resume.has_request_filter
        pairs: List[RequestDate] = []

        for request in requests:
            # Dimensions are done once a date-based run has started
            if request.is_dimension:
                continue

            if not started:
                if request.id != resume.request_id:
                    continue
                started = True

            for day in days:
                # The floor only holds until the first pair of the pass
                if not pairs and day < floor:
                    continue
                pairs.append((request, day))

        if not started:
            logger.warning(
                f"Resume request id '{resume.request_id}' not found, nothing to schedule"
            )
        return pairs

    def _resume_from_request(
        self,
        requests: Sequence[Request],
        days: Tuple[date, ...],
        request_id: str,
    ) -> List[RequestDate]:
        started = False
        pairs: List[RequestDate] = []

        for request in requests:
            if not started:
                if request.id != request_id:
                    continue
                started = True
            pairs.extend(self._expand(request, days))

        if not started:
            logger.warning(
                f"Resume request id '{request_id}' not found, nothing to schedule"
            )
        return pairs

    @staticmethod
    def _expand(request: Request, days: Tuple[date, ...]) -> List[RequestDate]:
        if request.is_dimension:
            return [(request, None)]
        return [(request, day) for day in days]

    # ============================================
    # Phase B: account fan-out
    # ============================================

    def fan_out(
        self,
        pairs: Iterable[RequestDate],
        accounts: Sequence[AdAccount],
    ) -> List[WorkItem]:
        """
        Attach ad accounts to (request, date) pairs.

        Args:
            pairs: Output of interleave()
            accounts: Normalized accounts (see normalize_ad_accounts)

        Returns:
            Ordered list of WorkItem
        """
        by_id: Dict[str, AdAccount] = {}
        for account in accounts:
            by_id.setdefault(account.normalized_id, account)

        items: List[WorkItem] = []
        for request, day in pairs:
            explicit_id = request.explicit_account_id()
            if explicit_id:
                items.append(WorkItem(
                    request=request,
                    date=day,
                    ad_account_id=explicit_id,
                    ad_account=by_id.get(explicit_id),
                ))
                continue

            if accounts:
                for account in accounts:
                    items.append(WorkItem(
                        request=request,
                        date=day,
                        ad_account_id=account.normalized_id,
                        ad_account=account,
                    ))
            else:
                # Single-account connectors configure no accounts at all
                items.append(WorkItem(request=request, date=day))

        return items


# ============================================
# Configuration-level Helpers
# ============================================


def get_requests_by_date(config, state: Optional[Mapping[str, str]]) -> List[RequestDate]:
    """
    Phase A for a loaded configuration and state mapping.

    Args:
        config: Loaded ConfigFile
        state: Flat resume state ('date', 'requestId')

    Returns:
        Ordered list of (request, date) pairs
    """
    requests = get_requests(config)
    dates = get_date_range_from_config(config)
    return WorkItemScheduler().interleave(requests, dates, ResumeState.from_mapping(state))


def get_work_items(config, state: Optional[Mapping[str, str]]) -> List[WorkItem]:
    """
    Full schedule for a loaded configuration and state mapping.

    Args:
        config: Loaded ConfigFile
        state: Flat resume state ('date', 'requestId')

    Returns:
        Ordered list of WorkItem still to execute
    """
    scheduler = WorkItemScheduler()
    requests = get_requests(config)
    dates = get_date_range_from_config(config)
    accounts = get_normalized_ad_accounts(config)
    resume = ResumeState.from_mapping(state)

    if not resume.is_empty:
        logger.info(
            f"Resuming from date={resume.date or '-'} requestId={resume.request_id or '-'}"
        )

    pairs = scheduler.interleave(requests, dates, resume)
    items = scheduler.fan_out(pairs, accounts)
    logger.info(f"Scheduled {len(items)} work items ({len(pairs)} request/date pairs)")
    return items
