"""Tests for the stored document codec."""

from workshop_manager.adapters.snapshot_codec import decode_state, encode_state
from workshop_manager.domain.sessions import SessionStatus


def _document() -> dict[str, object]:
    return {
        "workshops": [
            {
                "id": "w1",
                "name": "Oficina Central Pro",
                "ownerId": "u1",
                "settings": {
                    "workshopName": "Oficina Central Pro",
                    "taxRate": 0.15,
                    "freelanceMultiplier": 1.5,
                    "currencySymbol": "R$",
                    "categoryGroups": {"Motor": "Performance"},
                    "esteticaWebhook": "",
                    "performanceWebhook": "",
                    "logoUrl": "https://img/logo.png",
                },
                "catalog": [{"id": "p1", "name": "Turbo"}],
                "roles": [{"id": "r_mechanic"}],
                "history": [
                    {
                        "id": "r1",
                        "mechanicId": "m1",
                        "mechanicName": "Alice",
                        "customerName": "John",
                        "customerId": "42",
                        "authorizedBy": "Boss",
                        "parts": [
                            {
                                "partId": "p1",
                                "name": "Turbo",
                                "price": 500,
                                "category": "Motor",
                            }
                        ],
                        "inGameCost": 0,
                        "freelanceFee": 0,
                        "totalAmount": 500,
                        "tax": 75,
                        "finalPrice": 575,
                        "timestamp": 10,
                        "screenshot": "data:image/png;base64,AAA",
                    }
                ],
                "workSessions": [
                    {
                        "id": "s1",
                        "mechanicId": "m1",
                        "mechanicName": "Alice",
                        "startTime": 0,
                        "endTime": 5000,
                        "pauses": [
                            {"start": 1000, "end": 2000},
                            {"start": 3000, "end": 4000},
                        ],
                        "status": "completed",
                    },
                    {
                        "id": "s2",
                        "mechanicId": "m1",
                        "mechanicName": "Alice",
                        "startTime": 6000,
                        "pauses": [{"start": 7000}],
                        "status": "paused",
                    },
                ],
            }
        ],
        "users": [
            {
                "id": "m1",
                "username": "alice",
                "name": "Alice",
                "roleId": "r_mechanic",
                "workshopId": "w1",
                "pendingTax": 75,
                "password": "secret",
            }
        ],
        "announcements": [{"id": "a1", "text": "hello"}],
    }


def test_decode_builds_session_book() -> None:
    state = decode_state(_document())

    book = state.workshops["w1"].sessions
    assert book.open["m1"].id == "s2"
    assert book.open["m1"].status is SessionStatus.PAUSED
    assert [s.id for s in book.closed] == ["s1"]
    assert [p.start for p in book.closed[0].pauses] == [1000, 3000]
    assert state.users["m1"].pending_tax == 75.0
    assert state.workshops["w1"].history[0].parts[0].part_id == "p1"


def test_encode_keeps_camel_case_and_unmodeled_keys() -> None:
    document = encode_state(decode_state(_document()))

    workshop = document["workshops"][0]
    assert document["announcements"] == [{"id": "a1", "text": "hello"}]
    assert workshop["catalog"] == [{"id": "p1", "name": "Turbo"}]
    assert workshop["ownerId"] == "u1"
    assert workshop["settings"]["logoUrl"] == "https://img/logo.png"
    assert workshop["settings"]["taxRate"] == 0.15
    assert workshop["history"][0]["screenshot"] == "data:image/png;base64,AAA"
    assert workshop["history"][0]["finalPrice"] == 575
    assert document["users"][0]["password"] == "secret"
    assert document["users"][0]["pendingTax"] == 75
    sessions = workshop["workSessions"]
    assert [s["id"] for s in sessions] == ["s1", "s2"]
    assert sessions[0]["pauses"] == [
        {"start": 1000, "end": 2000},
        {"start": 3000, "end": 4000},
    ]
    assert sessions[1]["status"] == "paused"


def test_duplicate_open_sessions_complete_the_older_one() -> None:
    document = _document()
    sessions = document["workshops"][0]["workSessions"]
    sessions.append(
        {
            "id": "s0",
            "mechanicId": "m1",
            "mechanicName": "Alice",
            "startTime": 5500,
            "status": "active",
        }
    )

    state = decode_state(document)

    book = state.workshops["w1"].sessions
    assert book.open["m1"].id == "s2"
    (retired,) = [session for session in book.closed if session.id == "s0"]
    assert retired.status is SessionStatus.COMPLETED
    assert retired.end_time == 6000

    stored_ids = {
        session["id"]
        for session in encode_state(state)["workshops"][0]["workSessions"]
    }
    assert stored_ids == {"s0", "s1", "s2"}


def test_missing_settings_fields_use_defaults() -> None:
    state = decode_state(
        {
            "workshops": [
                {
                    "id": "w2",
                    "name": "Nova",
                    "ownerId": "u2",
                    "settings": {"workshopName": "Nova"},
                }
            ]
        }
    )

    settings = state.workshops["w2"].settings
    assert settings.tax_rate == 0.15
    assert settings.freelance_multiplier == 1.5
    assert settings.currency_symbol == "R$"
    assert state.users == {}
