from datetime import date, timedelta

from rmforecast.models import ReservationRecord

# 2024-06-02, 2024-06-09 and 2025-06-01 are Sundays; 2024-06-05 and 2025-06-04 are Wednesdays.
TODAY = date(2025, 5, 2)
SUNDAY_LAST_YEAR = date(2024, 6, 2)
SUNDAY_LAST_YEAR_2 = date(2024, 6, 9)
SUNDAY_UPCOMING = date(2025, 6, 1)
WEDNESDAY_LAST_YEAR = date(2024, 6, 5)
WEDNESDAY_UPCOMING = date(2025, 6, 4)


def booking(flight, flight_date, days_before, price=100.0, fare_class="Y"):
    return ReservationRecord(
        flight=flight,
        flight_date=flight_date,
        booking_date=flight_date - timedelta(days=days_before),
        fare_class=fare_class,
        price=price,
    )


def departure(flight, flight_date, lead_times, price=100.0):
    return [booking(flight, flight_date, lead, price=price) for lead in lead_times]


def scenario_a_records():
    """FL100 on Sundays: two past departures averaging 20 pax, 5 of them booked 30+ days out."""
    history = []
    for flight_date in (SUNDAY_LAST_YEAR, SUNDAY_LAST_YEAR_2):
        history += departure("FL100", flight_date, [40] * 5 + [10] * 15, price=120.0)
    current = departure("FL100", SUNDAY_UPCOMING, [35] * 6, price=150.0)
    return history + current


def weekly_history(flight, first_date, departures, lead_times, price=100.0):
    records = []
    for week in range(departures):
        records += departure(flight, first_date + timedelta(weeks=week), lead_times, price=price)
    return records


# The Scenario A history as an upload: two Sundays last year, one this year.
SNAPSHOT_CSV = "\n".join(
    ["FlightDate,BookingDate,FlightNumber,RBD,TotalChargeAmount"]
    + ["2024-06-02,2024-04-23,100,Y,120"] * 5
    + ["2024-06-02,2024-05-23,100,Y,120"] * 15
    + ["2024-06-09,2024-04-30,100,Y,120"] * 5
    + ["2024-06-09,2024-05-30,100,Y,120"] * 15
    + ["2025-06-01,2025-04-27,100,Y,150"] * 6
) + "\n"
