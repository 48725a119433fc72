"""
Offline console demo: runs booking form sessions without a backend.

Drives the real orchestrator, availability filter and staff resolver
against the in-memory mock backend. No network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario group
    python console_demo.py --scenario reschedule
"""

import argparse
import asyncio
from datetime import date, timedelta
from typing import Optional

from reservation_engine.clients.mock_backend import MockBookingBackend
from reservation_engine.config import settings
from reservation_engine.scheduling.orchestrator import (
    ReservationFormOrchestrator,
    SubmissionResult,
)
from reservation_engine.scheduling.reservation_utils import describe_guest
from reservation_engine.schemas.availability_schema import StaffSelection
from reservation_engine.schemas.reservation_schema import (
    Customer,
    GuestService,
    Reservation,
    ServiceItem,
)

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

SERVICES: list[ServiceItem] = [
    ServiceItem(id=1, name="Haircut", price=45.0, estimated_time=30),
    ServiceItem(id=2, name="Colour", price=120.0, estimated_time=90),
    ServiceItem(id=3, name="Blow Dry", price=35.0, estimated_time=30),
]


def system_log(text: str) -> None:
    print(f"{DIM}  >> {text}{RESET}")


def show_result(result: SubmissionResult) -> None:
    colour = GREEN if result.success else RED
    print(f"{colour}{BOLD}{result.message}{RESET}")
    for field_name, message in result.field_errors.items():
        print(f"{RED}  {field_name}: {message}{RESET}")
    if result.reservation:
        booking = result.reservation
        system_log(f"Reservation #{booking.id} at {booking.booking_time:%d/%m/%Y %H:%M}")
        for guest in booking.guests:
            system_log(describe_guest(guest))


class ConsoleSession:
    """Runs scripted or interactive booking form sessions in the terminal."""

    def __init__(self) -> None:
        self.backend = MockBookingBackend()
        self.orchestrator = ReservationFormOrchestrator(
            self.backend, self.backend, self.backend,
            on_saved=lambda r: system_log(f"Calendar refresh requested for #{r.id}"),
        )
        self.day = date.today() + timedelta(days=1)

    def show_slots(self) -> None:
        slots = self.orchestrator.state.available_slots
        if not slots:
            print(f"{YELLOW}No available times{RESET}")
            return
        for slot in slots:
            print(f"  {slot.time}  staff {list(slot.staff_ids)}")

    async def book(
        self,
        guests: int,
        staff: StaffSelection,
        slot_index: int = 0,
        customer: Optional[Customer] = None,
        walk_in: bool = True,
    ) -> SubmissionResult:
        await self.orchestrator.open_create(self.day)
        if guests > 1:
            await self.orchestrator.change_guest_count(guests)
        if not staff.is_any:
            await self.orchestrator.change_staff_mode(staff)
        self.show_slots()

        for index in range(guests):
            item = SERVICES[index % len(SERVICES)]
            self.orchestrator.set_guest_services(index, [GuestService(service_item=item)])
        self.orchestrator.set_customer(customer or Customer(first_name="Walk", last_name="In"))
        self.orchestrator.set_walk_in(walk_in)

        slots = self.orchestrator.state.available_slots
        if slots:
            picked = slots[min(slot_index, len(slots) - 1)].time
            self.orchestrator.select_slot(picked)
            system_log(f"Selected {picked}")
        result = await self.orchestrator.submit()
        show_result(result)
        return result

    async def reschedule(self, reservation: Reservation) -> SubmissionResult:
        await self.orchestrator.open_edit(reservation)
        await self.orchestrator.change_date(self.day + timedelta(days=1))
        self.show_slots()
        slots = self.orchestrator.state.available_slots
        if slots:
            self.orchestrator.select_slot(slots[-1].time)
        result = await self.orchestrator.submit()
        show_result(result)
        return result

    async def run_scenario(self, scenario: str) -> None:
        await self.orchestrator.load_staff()
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  RESERVATION ENGINE - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Max group size: {settings.store.max_group_size}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}\n")

        if scenario == "single":
            await self.book(1, StaffSelection.any())
        elif scenario == "group":
            await self.book(min(2, settings.store.max_group_size), StaffSelection.any())
        elif scenario == "reschedule":
            created = await self.book(min(2, settings.store.max_group_size), StaffSelection.any())
            if created.reservation:
                print()
                await self.reschedule(created.reservation)
        else:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")

    async def run(self) -> None:
        await self.orchestrator.load_staff()
        print(f"{BOLD}Booking for {self.day:%d/%m/%Y}{RESET}")
        staff = self.orchestrator.staff_options()
        for member in staff:
            print(f"  [{member.id}] {member.display_name}")

        guests = int(input("Guests: ") or "1")
        staff_id = int(input("Staff id (0 = anyone): ") or "0") if guests == 1 else 0
        selection = StaffSelection.any() if staff_id == 0 else StaffSelection.specific(staff_id)
        phone = input("Phone (blank for walk-in): ").strip()
        customer = Customer(first_name=input("First name: ").strip(), phone=phone)
        await self.book(guests, selection, customer=customer, walk_in=not phone)


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline booking engine demo")
    parser.add_argument(
        "--scenario",
        choices=["single", "group", "reschedule"],
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
