"""
Fixture dataset used on first run and whenever a durable key is absent or corrupt.

Records are kept in their serialized (``to_dict``) shape so they go through
the same decoding path as durable payloads.  Seed actors carry a plain-text
``password`` that is hashed when the seed is loaded; it never reaches the
store in clear.
"""

from portal.models.entities import EntityKind
from portal.utils.crypto import DEFAULT_ROUNDS, hash_password

SEED_PASSWORD = "password"

_ACTORS = [
    {
        "id": "u1",
        "name": "Sarah Producer",
        "email": "admin@validate.com",
        "password": SEED_PASSWORD,
        "role": "ADMIN",
        "avatar_url": "https://picsum.photos/id/64/200/200",
        "job_title": "Executive Producer",
        "phone": "555-0101",
    },
    {
        "id": "u2",
        "name": "Mike Client",
        "email": "mike@sdc.com",
        "password": SEED_PASSWORD,
        "role": "CLIENT",
        "organization_id": "org1",
        "avatar_url": "https://picsum.photos/id/91/200/200",
        "job_title": "Marketing Director",
        "phone": "555-0202",
    },
]

_ORGANIZATIONS = [
    {
        "id": "org1",
        "name": "Silver Dollar City",
        "primary_contact_name": "Mike Client",
        "primary_contact_email": "mike@sdc.com",
    },
    {
        "id": "org2",
        "name": "Big Cedar Lodge",
        "primary_contact_name": "Jenny Marketing",
        "primary_contact_email": "jenny@bigcedar.com",
    },
]

_PROJECTS = [
    {
        "id": "p1",
        "organization_id": "org1",
        "name": "Spring Brand Film",
        "description": "A 60-second cinematic brand anthem showcasing the new park "
                       "expansion and spring aesthetic.",
        "status": "Post-Production",
        "start_date": "2023-03-01",
        "due_date": "2023-05-15",
    },
    {
        "id": "p2",
        "organization_id": "org1",
        "name": "Holiday Campaign",
        "description": "Series of 15s spots for the Christmas festival.",
        "status": "Pre-Production",
        "start_date": "2023-06-01",
        "due_date": "2023-10-01",
    },
]

_MILESTONES = [
    {"id": "m1", "project_id": "p1", "title": "Concept Approval",
     "due_date": "2023-03-10", "status": "Completed"},
    {"id": "m2", "project_id": "p1", "title": "Principal Photography",
     "due_date": "2023-04-01", "status": "Completed"},
    {"id": "m3", "project_id": "p1", "title": "Rough Cut Delivery",
     "due_date": "2023-04-20", "status": "In Progress"},
    {"id": "m4", "project_id": "p1", "title": "Final Delivery",
     "due_date": "2023-05-15", "status": "Not Started"},
]

_MESSAGES = [
    {
        "id": "msg1",
        "project_id": "p1",
        "sender_id": "u1",
        "sender_name": "Sarah Producer",
        "is_internal": False,
        "body": "Hi Mike! Just uploaded the first look at the color grade. "
                "Let us know what you think.",
        "created_at": "2023-04-18T10:00:00Z",
    },
    {
        "id": "msg2",
        "project_id": "p1",
        "sender_id": "u2",
        "sender_name": "Mike Client",
        "is_internal": False,
        "body": "Looks fantastic Sarah. The warmth in the golden hour shots is perfect.",
        "created_at": "2023-04-18T11:30:00Z",
    },
    {
        "id": "msg3",
        "project_id": "p1",
        "sender_id": "u1",
        "sender_name": "Sarah Producer",
        "is_internal": True,
        "body": "Note to editor: Fix the stabilizer warp in shot 4 before sending V2.",
        "created_at": "2023-04-19T09:00:00Z",
    },
]

_FILES = [
    {
        "id": "f1",
        "project_id": "p1",
        "uploaded_by_id": "u1",
        "uploaded_by_name": "Sarah Producer",
        "file_name": "Brand_Voiceover_Script_v3.pdf",
        "file_type": "pdf",
        "file_size": "2.4 MB",
        "is_client_visible": True,
        "created_at": "2023-03-15T14:00:00Z",
        "url": "https://www.w3.org/WAI/ER/tests/xhtml/testfiles/resources/pdf/dummy.pdf",
    },
    {
        "id": "f2",
        "project_id": "p1",
        "uploaded_by_id": "u2",
        "uploaded_by_name": "Mike Client",
        "file_name": "SDC_Logo_Reference.jpg",
        "file_type": "jpg",
        "file_size": "1.5 MB",
        "is_client_visible": True,
        "created_at": "2023-03-12T09:00:00Z",
        "url": "https://picsum.photos/id/1018/1000/600",
    },
    {
        "id": "f3",
        "project_id": "p1",
        "uploaded_by_id": "u1",
        "uploaded_by_name": "Sarah Producer",
        "file_name": "Budget_Breakdown_Internal.csv",
        "file_type": "csv",
        "file_size": "1 MB",
        "is_client_visible": False,
        "created_at": "2023-03-01T10:00:00Z",
        "url": "https://people.sc.fsu.edu/~jburkardt/data/csv/addresses.csv",
    },
    {
        "id": "f4",
        "project_id": "p1",
        "uploaded_by_id": "u1",
        "uploaded_by_name": "Sarah Producer",
        "file_name": "Moodboard_v1.jpg",
        "file_type": "jpg",
        "file_size": "3.2 MB",
        "is_client_visible": True,
        "created_at": "2023-03-10T11:00:00Z",
        "url": "https://picsum.photos/id/24/1000/800",
    },
]

_APPROVALS = [
    {
        "id": "a1",
        "project_id": "p1",
        "title": "Latest Cut - 60s Spot",
        "description": "Addressing color and pacing notes. Updated music track included.",
        "link_to_review": "https://storage.googleapis.com/gtv-videos-bucket/sample/"
                          "ForBiggerMeltdowns.mp4",
        "status": "Pending Review",
    },
]

SEED = {
    EntityKind.ACTORS: _ACTORS,
    EntityKind.ORGANIZATIONS: _ORGANIZATIONS,
    EntityKind.PROJECTS: _PROJECTS,
    EntityKind.MILESTONES: _MILESTONES,
    EntityKind.MESSAGES: _MESSAGES,
    EntityKind.FILES: _FILES,
    EntityKind.APPROVALS: _APPROVALS,
}


def load_seed(kind: EntityKind, *, bcrypt_rounds: int = DEFAULT_ROUNDS) -> list[dict]:
    """Return fresh serialized seed records for *kind*.

    Actor secrets are hashed here; the copies returned are safe to mutate.
    """
    records = [dict(row) for row in SEED[kind]]
    if kind == EntityKind.ACTORS:
        for row in records:
            secret = row.pop("password", None)
            row["password_hash"] = hash_password(secret, bcrypt_rounds) if secret else None
    return records
