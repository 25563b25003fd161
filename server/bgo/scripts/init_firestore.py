"""
B-Go Admin — Seed Firestore with a sample conductor day
Run: python -m bgo.scripts.init_firestore [YYYY-MM-DD]
"""
import os
import sys
from datetime import datetime, timezone

# Add server/ to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from bgo.config import settings
from bgo.database import (
    CHANNEL_TICKETS, CHANNEL_PRE_BOOKINGS, CHANNEL_PRE_TICKETS,
    conductors_ref, daily_trips_ref, trip_channel_ref,
)
from bgo.services.conductors import get_coding_day_from_plate

CONDUCTOR_ID = "juan_delacruz"


def init(date: str):
    now = datetime.now(timezone.utc)

    conductors_ref().document(CONDUCTOR_ID).set({
        "name": "Juan Dela Cruz",
        "email": "juan.delacruz@bgo.example",
        "busNumber": 12,
        "route": "Batangas - SM Lipa",
        "plateNumber": "ABC1234",
        "codingDay": get_coding_day_from_plate("ABC1234"),
        "isOnline": False,
        "status": "offline",
        "busAvailabilityStatus": "no-reservation",
        "userRole": "conductor",
        "totalTrips": 0,
        "todayTrips": 0,
        "createdAt": now,
        "updatedAt": now,
        "lastSeen": None,
        "currentLocation": None,
    })

    daily_trips_ref(CONDUCTOR_ID).document(date).set({
        "trip1": {
            "direction": "Batangas → SM Lipa",
            "startTime": now,
            "endTime": now,
            "isComplete": True,
            "placeCollection": "Batangas Grand Terminal",
        },
    })

    trip_channel_ref(CONDUCTOR_ID, date, "trip1", CHANNEL_TICKETS).document("1").set({
        "from": "Batangas Grand Terminal",
        "to": "SM Lipa",
        "totalFare": 57.0,
        "quantity": 2,
        "farePerPassenger": [35.0, 22.0],
        "discountBreakdown": ["Passenger 1: Regular", "Passenger 2: Senior (20% off)"],
        "documentType": "conductorTicket",
        "startKm": 0,
        "endKm": 28,
        "totalKm": 28,
        "timestamp": now,
    })
    trip_channel_ref(CONDUCTOR_ID, date, "trip1", CHANNEL_PRE_BOOKINGS).document("pb-1").set({
        "from": "Batangas Grand Terminal",
        "to": "SM Lipa",
        "totalFare": 35.0,
        "quantity": 1,
        "documentType": "preBooking",
        "status": "boarded",
        "scannedAt": now,
    })
    trip_channel_ref(CONDUCTOR_ID, date, "trip1", CHANNEL_PRE_TICKETS).document("pt-1").set({
        "qrData": '{"from": "Batangas Grand Terminal", "to": "SM Lipa", "amount": 28, '
                  '"quantity": 1, "fareTypes": ["Student"], "passengerFares": [28]}',
        "documentType": "preTicket",
        "status": "boarded",
        "scannedAt": now,
    })

    print(f"✅ Seeded conductors/{CONDUCTOR_ID} with one trip on {date}")
    print(f"   Project: {settings.FIREBASE_PROJECT_ID or '(default credentials)'}")
    print("   Channels: 1 conductor ticket, 1 pre-booking, 1 pre-ticket")


if __name__ == "__main__":
    init(sys.argv[1] if len(sys.argv) > 1 else datetime.now(settings.local_tz).date().isoformat())
