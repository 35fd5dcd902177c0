"""
Destination Table Lifecycle

Decides what has to happen to the destination table before records are
written, and drives the table through those transitions.

The table is observed through DescribeTable as one of three states:

    ABSENT         DescribeTable answers ResourceNotFoundException
    TRANSITIONING  TableStatus is CREATING, UPDATING, DELETING, ...
    ACTIVE         TableStatus is ACTIVE

    ABSENT --create--> TRANSITIONING --> ACTIVE
    ACTIVE --delete--> TRANSITIONING --> ABSENT

TRANSITIONING is never treated as final: CreateTable/DeleteTable against a
table mid-transition is rejected, so every step polls until the table is
ABSENT or ACTIVE. Each poll is bounded by an attempt budget and sleeps
between checks through an injectable sleep function.

Decision policy (table exists / overwrite_existing / create_table):

    no  / any   / False -> TableMissingNoCreateError
    no  / any   / True  -> CREATE
    yes / False / any   -> TableExistsNoOverwriteError
    yes / True  / False -> TableMissingNoCreateError, raised before the delete
    yes / True  / True  -> DELETE_AND_CREATE
"""

import logging
import time
from typing import Callable, FrozenSet, Optional, Type

from ..exceptions import (
    CreateTimeoutError,
    DeleteTimeoutError,
    ImporterError,
    LifecycleQueryFailedError,
    NotFoundError,
    RetryableError,
    TableExistsNoOverwriteError,
    TableMissingNoCreateError,
    TableOperationError,
    TableTransitionTimeoutError,
)
from ..models import LifecycleAction, TableSchema, TableState
from .schema_translator import build_create_table_params

logger = logging.getLogger(__name__)

TERMINAL_STATES: FrozenSet[TableState] = frozenset([TableState.ABSENT, TableState.ACTIVE])


def plan_table_action(
    table_name: str,
    table_exists: bool,
    create_table: bool,
    overwrite_existing: bool
) -> LifecycleAction:
    """
    Apply the decision policy.

    Raises:
        TableExistsNoOverwriteError: Table exists and overwrite is disabled
        TableMissingNoCreateError: The table would have to be (re)created but
            creation is disabled
    """
    if table_exists:
        if not overwrite_existing:
            raise TableExistsNoOverwriteError(table_name)
        if not create_table:
            raise TableMissingNoCreateError(table_name, exists=True)
        return LifecycleAction.DELETE_AND_CREATE

    if not create_table:
        raise TableMissingNoCreateError(table_name)
    return LifecycleAction.CREATE


class TableLifecycleManager:
    """Existence checks and create/delete transitions for one destination table."""

    def __init__(
        self,
        gateway,
        poll_interval_seconds: float = 2.0,
        max_poll_attempts: int = 30,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            gateway: TableGateway for the destination table
            poll_interval_seconds: Pause between status checks
            max_poll_attempts: Status checks before a transition times out
            sleep: Sleep function, replaced in tests
        """
        self.gateway = gateway
        self.poll_interval_seconds = poll_interval_seconds
        self.max_poll_attempts = max_poll_attempts
        self._sleep = sleep

    @property
    def table_name(self) -> str:
        return self.gateway.table_name

    def get_state(self) -> TableState:
        """
        Observe the table state.

        Raises:
            LifecycleQueryFailedError: DescribeTable failed for a reason other
                than "table not found"
        """
        try:
            description = self.gateway.describe_table()
        except NotFoundError:
            return TableState.ABSENT
        except ImporterError as e:
            raise LifecycleQueryFailedError(self.table_name, e) from e

        status = description.get('TableStatus')
        if status == 'ACTIVE':
            return TableState.ACTIVE
        logger.debug(f"Table {self.table_name} status: {status}")
        return TableState.TRANSITIONING

    def exists(self) -> bool:
        """True unless DescribeTable reports the table as not found."""
        return self.get_state() != TableState.ABSENT

    def await_state(
        self,
        targets: FrozenSet[TableState],
        timeout_error: Type[TableTransitionTimeoutError],
        creating: bool = False
    ) -> TableState:
        """
        Poll until the table reaches one of the target states.

        Args:
            targets: States that end the wait
            timeout_error: Raised when the attempt budget runs out
            creating: A freshly created table may briefly answer "not found"
                or a throttling error; count those as still transitioning

        Returns:
            The state reached

        Raises:
            TableTransitionTimeoutError: Subclass given by timeout_error
            LifecycleQueryFailedError: Status could not be read
        """
        state: Optional[TableState] = None
        for attempt in range(1, self.max_poll_attempts + 1):
            try:
                state = self.get_state()
            except LifecycleQueryFailedError as e:
                if not (creating and isinstance(e.original_error, RetryableError)):
                    raise
                state = TableState.TRANSITIONING

            if creating and state == TableState.ABSENT:
                state = TableState.TRANSITIONING

            if state in targets:
                logger.debug(f"Table {self.table_name} reached {state.value} after {attempt} check(s)")
                return state

            logger.info(
                f"Waiting for table {self.table_name}... state: {state.value} "
                f"({attempt}/{self.max_poll_attempts})"
            )
            if attempt < self.max_poll_attempts:
                self._sleep(self.poll_interval_seconds)

        raise timeout_error(self.table_name, self.max_poll_attempts, state.value if state else None)

    def await_terminal_state(self) -> TableState:
        """Wait out a transition started elsewhere, ending ABSENT or ACTIVE."""
        return self.await_state(TERMINAL_STATES, TableTransitionTimeoutError)

    def delete_and_await_gone(self) -> None:
        """
        Delete the table and wait until DescribeTable no longer finds it.

        Raises:
            TableOperationError: DeleteTable was rejected
            DeleteTimeoutError: Table still visible after the attempt budget
        """
        logger.info(f"Deleting existing table: {self.table_name}")
        try:
            self.gateway.delete_table()
        except NotFoundError:
            logger.info(f"Table {self.table_name} was already gone")
            return
        except ImporterError as e:
            raise TableOperationError("delete", self.table_name, e) from e

        self.await_state(frozenset([TableState.ABSENT]), DeleteTimeoutError)
        logger.info(f"Table {self.table_name} has been deleted")

    def create_and_await_active(self, schema: TableSchema) -> None:
        """
        Create the table from the exported schema and wait until it is ACTIVE.

        Raises:
            TableOperationError: CreateTable was rejected
            CreateTimeoutError: Table not ACTIVE after the attempt budget
        """
        params = build_create_table_params(self.table_name, schema)
        logger.info(f"Creating table: {self.table_name} ({params['BillingMode']})")
        try:
            self.gateway.create_table(params)
        except ImporterError as e:
            raise TableOperationError("create", self.table_name, e) from e

        self.await_state(frozenset([TableState.ACTIVE]), CreateTimeoutError, creating=True)
        logger.info(f"Table {self.table_name} is now active")

    def ensure_table(
        self,
        schema: TableSchema,
        create_table: bool,
        overwrite_existing: bool,
        dry_run: bool = False
    ) -> LifecycleAction:
        """
        Bring the table into an importable state according to the policy flags.

        Args:
            schema: Exported schema used when the table is (re)created
            create_table: Creation allowed
            overwrite_existing: Deleting an existing table allowed
            dry_run: Only decide; make no changes

        Returns:
            The action taken (or that would be taken on a dry run)
        """
        state = self.get_state()
        if state == TableState.TRANSITIONING and not dry_run:
            logger.info(f"Table {self.table_name} is mid-transition, waiting for it to settle")
            state = self.await_terminal_state()

        table_exists = state != TableState.ABSENT
        action = plan_table_action(self.table_name, table_exists, create_table, overwrite_existing)
        logger.info(f"Table {self.table_name} exists: {table_exists}, action: {action.value}")

        if dry_run:
            return action

        if action == LifecycleAction.DELETE_AND_CREATE:
            self.delete_and_await_gone()
        self.create_and_await_active(schema)
        return action
