"""
Offline console demo: drives a booking session from the terminal.

Uses the real session, pricing, end-time derivation, validation and mock
backends. No network calls. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario reservation
    python console_demo.py --scenario edit
    python console_demo.py --scenario training
"""

import argparse
import asyncio
from datetime import date
from typing import Optional

from booking_engine.config import settings
from booking_engine.schemas.booking_schema import BookingPayload, ExistingBooking
from booking_engine.schemas.service_schema import CarSize, DayHours, ServiceItem, Station
from booking_engine.session import BookingMode, BookingSession, SessionClosedError
from booking_engine.tools import booking
from booking_engine.tools.customer import get_customer
from booking_engine.tools.pricing import format_duration
from booking_engine.tools.services import get_services

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_DATE = date(2026, 10, 19)

STATIONS = [
    Station(id="st-1", name="Stanowisko 1", type="washing"),
    Station(id="st-2", name="Stanowisko 2", type="detailing"),
    Station(id="st-ppf", name="Hala PPF", type="ppf"),
]

_WEEKDAY = DayHours(open="08:00", close="18:00")
WORKING_HOURS = {
    "monday": _WEEKDAY,
    "tuesday": _WEEKDAY,
    "wednesday": _WEEKDAY,
    "thursday": _WEEKDAY,
    "friday": _WEEKDAY,
    "saturday": DayHours(open="09:00", close="14:00"),
    "sunday": None,
}

STORED_PAYLOAD = BookingPayload(
    customer_name="Anna Nowak",
    customer_phone="+48501222333",
    vehicle_model="Skoda Octavia",
    car_size=CarSize.MEDIUM,
    service_ids=["svc-basic-wash"],
    reservation_date=DEMO_DATE,
    start_time="09:00",
    end_time="10:30",
    station_id="st-1",
    price=60,
)


def _stored_booking() -> ExistingBooking:
    """Persist a booking through the mock backend and load it back for editing."""
    record = booking.create_booking(STORED_PAYLOAD)
    payload = STORED_PAYLOAD
    return ExistingBooking(
        id=record["id"],
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
        vehicle_model=payload.vehicle_model,
        car_size=payload.car_size,
        reservation_date=payload.reservation_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        station_id=payload.station_id,
        service_items=[ServiceItem(service_id=s) for s in payload.service_ids],
        price=payload.price,
    )


class ConsoleSession:
    """Operator commands in, session state out."""

    HELP = (
        "phone <number> | pick <n> | name <text> | model <text> | size <small|medium|large> | "
        "service <id> | custom <id> <price> | discount <percent> | price <amount|none> | "
        "date <YYYY-MM-DD> [YYYY-MM-DD] | start <HH:MM> | end <HH:MM> | station <id> | "
        "training <type> | show | submit | quit"
    )

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "reservation": [
            "phone 733",
            "pick 1",
            "start 10:00",
            "service svc-basic-wash",
            "service svc-premium-wash",
            "end 12:00",
            "service svc-interior",
            "submit",
        ],
        "edit": [
            "show",
            "start 11:00",
            "service svc-premium-wash",
            "price 150",
            "submit",
        ],
        "training": [
            "training individual",
            "show",
            "submit",
        ],
    }

    MAX_INPUT_LENGTH = 200

    def __init__(self, mode: BookingMode = BookingMode.RESERVATION, edit: bool = False) -> None:
        services = get_services()
        if edit:
            self.session = BookingSession.open_edit(
                _stored_booking(), services, STATIONS, WORKING_HOURS, mode=mode
            )
        else:
            self.session = BookingSession.open_new(
                services, STATIONS, WORKING_HOURS, mode=mode,
                initial_date=DEMO_DATE, initial_station_id="st-1",
            )

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        for step in steps:
            if self.session.closed:
                break
            print(f"\n{BLUE}[Operator] {RESET}{step}")
            self._process_input(step)
        self._footer()

    def run(self) -> None:
        self._banner("Console Demo")
        self.say(self.HELP)

        while not self.session.closed:
            user_input = input(f"\n{BLUE}[Operator] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                self.session.close()
                return
            if len(user_input) > self.MAX_INPUT_LENGTH:
                print(f"{YELLOW}Input too long.{RESET}")
                continue
            self._process_input(user_input)
        self._footer()

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  BOOKING ENGINE - {title}{RESET}")
        print(f"{BOLD}  Instance: {settings.instance_name}{RESET}")
        print(f"{BOLD}  Mode: {self.session.mode.value}"
              f"{' (edit)' if self.session.is_edit else ''}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _footer(self) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Session {self.session.session_id} complete.{RESET}")
        print(f"{DIM}  End time derivation: {self.session.end_time_state}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _process_input(self, text: str) -> None:
        command, _, argument = text.partition(" ")
        handler = getattr(self, f"_cmd_{command.lower()}", None)
        if handler is None:
            print(f"{YELLOW}Unknown command. {self.HELP}{RESET}")
            return
        try:
            handler(argument.strip())
        except (ValueError, SessionClosedError) as exc:
            print(f"{RED}{exc}{RESET}")

    def _show_state(self) -> None:
        draft = self.session.draft
        summary = self.session.summary()
        self.system_log(
            f"{draft.date_from} {draft.start_time or '--:--'}-{draft.end_time or '--:--'} "
            f"station={draft.station_id} size={draft.car_size.value}"
        )
        self.system_log(
            f"services={draft.service_ids} duration={format_duration(summary.duration)} "
            f"total={summary.price} final={self.session.total_price()}"
        )

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def _cmd_show(self, _: str) -> None:
        self._show_state()

    def _cmd_phone(self, value: str) -> None:
        asyncio.run(self._type_phone(value))

    async def _type_phone(self, value: str) -> None:
        self.session.set_phone(value)
        await self.session.lookup.wait_idle()
        for index, vehicle in enumerate(self.session.found_vehicles, start=1):
            self.system_log(
                f"{index}. {vehicle.customer_name or '?'} - {vehicle.model} ({vehicle.phone})"
            )
        if not self.session.found_vehicles:
            self.system_log("No matching customers")

    def _cmd_pick(self, value: str) -> None:
        vehicles = self.session.found_vehicles
        index = int(value) - 1
        if not 0 <= index < len(vehicles):
            raise ValueError(f"No search result #{value}")
        vehicle = vehicles[index]
        self.session.select_vehicle(vehicle, get_customer(vehicle.customer_id or ""))
        self.say(f"Selected {vehicle.customer_name} / {vehicle.model}")
        self._show_state()

    def _cmd_name(self, value: str) -> None:
        self.session.set_customer_name(value)

    def _cmd_model(self, value: str) -> None:
        self.session.set_vehicle_model(value)

    def _cmd_size(self, value: str) -> None:
        self.session.set_car_size(value)
        self._show_state()

    def _cmd_service(self, value: str) -> None:
        self.session.toggle_service(value)
        self._show_state()

    def _cmd_custom(self, value: str) -> None:
        service_id, _, price = value.partition(" ")
        self.session.set_custom_price(service_id, float(price) if price else None)
        self._show_state()

    def _cmd_discount(self, value: str) -> None:
        self.session.set_customer_discount(float(value))
        self._show_state()

    def _cmd_price(self, value: str) -> None:
        self.session.set_final_price(None if value == "none" else float(value))
        self._show_state()

    def _cmd_date(self, value: str) -> None:
        parts = value.split()
        date_to: Optional[date] = date.fromisoformat(parts[1]) if len(parts) > 1 else None
        self.session.set_date_range(date.fromisoformat(parts[0]), date_to)

    def _cmd_start(self, value: str) -> None:
        self.session.set_start_time(value)
        self._show_state()

    def _cmd_end(self, value: str) -> None:
        self.session.set_end_time(value)
        self.system_log("End time fixed by operator")
        self._show_state()

    def _cmd_station(self, value: str) -> None:
        self.session.set_station(value)

    def _cmd_training(self, value: str) -> None:
        self.session.apply_training_type(value)
        self._show_state()

    def _cmd_submit(self, _: str) -> None:
        result = self.session.submit()
        if result.success:
            self.say(f"{result.message}: {result.booking_id}")
            return
        print(f"{RED}{result.message}{RESET}")
        for tag, message in result.errors.items():
            marker = "->" if tag == result.focus_field else "  "
            print(f"{YELLOW}  {marker} {tag}: {message}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline booking console demo")
    parser.add_argument(
        "--scenario",
        choices=["reservation", "edit", "training"],
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    mode = BookingMode.TRAINING if args.scenario == "training" else BookingMode.RESERVATION
    console = ConsoleSession(mode=mode, edit=args.scenario == "edit")
    if args.scenario:
        console.run_scenario(args.scenario)
    else:
        console.run()


if __name__ == "__main__":
    main()
