"""
Service layer for Party operations.

Manages customers, suppliers and salesmen.  A party's balance is never
stored, so the only balance-affecting write here is the opening balance.

Returns PartyInfo DTOs instead of ORM entities.
"""

from __future__ import annotations

from datetime import date

from ledger_kernel.domain.decimal_math import ZERO
from ledger_kernel.domain.dtos import PartyInfo
from ledger_kernel.exceptions import InvalidAmountError, PartyNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.opening_balance import OpeningBalance
from ledger_kernel.models.party import Party, PartyType
from ledger_kernel.services.base import BaseService

logger = get_logger("services.party")


class PartyService(BaseService[Party]):
    """Service for managing parties."""

    def _to_dto(self, party: Party) -> PartyInfo:
        """Convert ORM Party to PartyInfo DTO."""
        return PartyInfo(
            id=party.id,
            name=party.name,
            party_type=PartyType(party.party_type).value,
            phone=party.phone,
        )

    def _get_by_id(self, party_id: int) -> Party:
        """Get party by ID, raising if not found."""
        party = self.session.get(Party, party_id)
        if party is None:
            raise PartyNotFoundError(party_id)
        return party

    def get_by_id(self, party_id: int) -> PartyInfo:
        """
        Get party by ID.

        Raises:
            PartyNotFoundError: If party doesn't exist.
        """
        return self._to_dto(self._get_by_id(party_id))

    def create_party(
        self,
        name: str,
        party_type: PartyType | str,
        phone: str | None = None,
        credit_limit: object = None,
        actor_id: str | None = None,
    ) -> PartyInfo:
        """
        Create a party.

        ``credit_limit`` caps a customer's receivable when sales are
        recorded; zero (the default) means no cap.
        """
        clean_name = self._require_text(name, "name")
        kind = self._require_choice(party_type, PartyType, "party_type")
        limit = ZERO if credit_limit is None else self._book_amount(credit_limit, "credit_limit")
        if limit < ZERO:
            raise InvalidAmountError(credit_limit, "credit_limit", "must not be negative")
        party = Party(
            name=clean_name,
            party_type=kind.value,
            phone=phone,
            credit_limit=limit,
            created_by=actor_id,
        )
        self.session.add(party)
        self.session.flush()
        logger.info(
            "party_created",
            extra={"party_id": party.id, "party_type": kind.value},
        )
        return self._to_dto(party)

    def add_opening_balance(
        self,
        party_id: int,
        amount: object,
        balance_date: date | None,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> PartyInfo:
        """
        Record an amount the party already owed (or was owed) at go-live.

        A positive amount increases the party's balance; a negative amount
        is a credit carried forward.
        """
        value = self._require_nonzero(amount)
        when = self._require_date(balance_date, "date")
        party = self._get_by_id(party_id)

        with LogContext.bind(actor_id=actor_id, party_id=party_id, operation="opening_balance"):
            self.session.add(OpeningBalance(
                party_id=party_id,
                amount=value,
                balance_date=when,
                notes=notes or None,
                created_by=actor_id,
            ))
            self.session.flush()
            logger.info(
                "opening_balance_recorded",
                extra={"amount": str(value), "balance_date": when.isoformat()},
            )
        return self._to_dto(party)
