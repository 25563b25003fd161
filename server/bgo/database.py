"""
B-Go Admin — Firestore Database Client
"""
import os
import logging
from google.cloud import firestore
from google.oauth2 import service_account

from bgo.config import settings

logger = logging.getLogger("bgo-api")

_db = None

# Ticket channels under conductors/{id}/dailyTrips/{date}/{tripN}/
# Each channel repeats its name as collection and document id.
CHANNEL_TICKETS = "tickets"
CHANNEL_PRE_BOOKINGS = "preBookings"
CHANNEL_PRE_TICKETS = "preTickets"
CHANNELS = (CHANNEL_TICKETS, CHANNEL_PRE_BOOKINGS, CHANNEL_PRE_TICKETS)


def get_db() -> firestore.Client:
    """Get Firestore client (singleton)."""
    global _db
    if _db is None:
        server_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        default_sa = os.path.join(server_dir, "firebase-service-account.json")

        cred_path = settings.GOOGLE_APPLICATION_CREDENTIALS or os.environ.get(
            "GOOGLE_APPLICATION_CREDENTIALS", ""
        )
        if cred_path and not os.path.isabs(cred_path):
            cred_path = os.path.join(server_dir, os.path.basename(cred_path))

        resolved = cred_path if (cred_path and os.path.exists(cred_path)) else default_sa

        if os.path.exists(resolved):
            credentials = service_account.Credentials.from_service_account_file(
                resolved,
                scopes=["https://www.googleapis.com/auth/cloud-platform"],
            )
            _db = firestore.Client(credentials=credentials, project=credentials.project_id)
            logger.info(f"Firestore client initialized with service account: {resolved}")
        elif settings.FIREBASE_PROJECT_ID:
            _db = firestore.Client(project=settings.FIREBASE_PROJECT_ID)
            logger.info(f"Firestore client initialized for project {settings.FIREBASE_PROJECT_ID}")
        else:
            _db = firestore.Client()
            logger.info("Firestore client initialized with default credentials")
    return _db


# Collection references
def conductors_ref():
    return get_db().collection("conductors")

def audit_logs_ref():
    return get_db().collection("AuditLogs")

def daily_trips_ref(conductor_id: str):
    return conductors_ref().document(conductor_id).collection("dailyTrips")

def remittance_ref(conductor_id: str):
    return conductors_ref().document(conductor_id).collection("remittance")

def bus_number_ref(conductor_id: str):
    return conductors_ref().document(conductor_id).collection("busNumber")

def trip_channel_ref(conductor_id: str, date: str, trip: str, channel: str):
    """conductors/{id}/dailyTrips/{date}/{trip}/{channel}/{channel}"""
    return (
        daily_trips_ref(conductor_id)
        .document(date)
        .collection(trip)
        .document(channel)
        .collection(channel)
    )
