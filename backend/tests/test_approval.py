"""Tests for the approval engine: one test class per request type plus guards."""
import uuid

import pytest
from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from chapterhouse.auth import Actor
from chapterhouse.errors import RequestNotPending
from chapterhouse.models.artist import Artist
from chapterhouse.models.booking import Booking, BookingDate
from chapterhouse.models.request import Request, RequestStatus
from chapterhouse.models.user import Role, User
from chapterhouse.services import request_service
from chapterhouse.services.approval_service import ApprovalService
from tests.conftest import (
    ADMIN_EMAIL,
    approve,
    auth_headers,
    create_admin,
    create_test_artist,
    create_test_booking,
    create_test_user,
    set_role,
)


def _owned_artists(client, admin, user_id):
    artists = client.get("/api/artists/", headers=auth_headers(admin)).json()
    return [a["entity"] for a in artists if a["entity"]["owner_id"] == user_id]


class TestRoleChangeApproval:

    def test_musician_gets_solo_artist(self, client):
        """Promotion to Musician creates an approved solo artist named after the user."""
        admin = create_admin(client)
        user = create_test_user(client, name="Solo Sam")
        client.post("/api/users/me/setup", headers=auth_headers(user), json={"chapters": ["c1"]})
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={"role": "Musician"}).json()

        approved = approve(client, admin, request["request_id"])
        assert approved["status"] == "APPROVED"

        live = client.get(f"/api/users/{user['user_id']}").json()["entity"]
        assert live["role"] == "Musician"
        owned = _owned_artists(client, admin, user["user_id"])
        assert len(owned) == 1
        assert owned[0]["name"] == "Solo Sam"
        assert owned[0]["members"] == [user["user_id"]]
        assert owned[0]["status"] == "APPROVED"
        assert owned[0]["chapters"] == ["c1"]

    def test_location_and_bio_come_from_payload(self, client):
        """The solo artist takes location and bio from the role change payload."""
        admin = create_admin(client)
        user = create_test_user(client)
        request = client.post("/api/users/me/setup", headers=auth_headers(user), json={
            "location": "Reno",
            "bio": "Bassist",
            "role": "Musician",
        }).json()
        approve(client, admin, request["request_id"])

        owned = _owned_artists(client, admin, user["user_id"])
        assert owned[0]["location"] == "Reno"
        assert owned[0]["bio"] == "Bassist"

    def test_existing_owner_gets_no_duplicate(self, client):
        """A user who already owns an artist gets no second solo artist."""
        admin = create_admin(client)
        user = create_test_user(client)
        user = set_role(client, admin, user, "Musician")
        assert len(_owned_artists(client, admin, user["user_id"])) == 1

        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={
            "role": "Chapter Director",
        }).json()
        approve(client, admin, request["request_id"])
        assert len(_owned_artists(client, admin, user["user_id"])) == 1

    def test_repromotion_creates_fresh_solo_artist(self, client):
        """Demotion removes the solo artist and promotion creates a new one."""
        admin = create_admin(client)
        user = set_role(client, admin, create_test_user(client), "Musician")
        set_role(client, admin, user, "Audience")
        # Demotion cleanup removed the solo artist
        assert _owned_artists(client, admin, user["user_id"]) == []

        user = set_role(client, admin, user, "Musician")
        assert len(_owned_artists(client, admin, user["user_id"])) == 1

    def test_demotion_to_audience_removes_memberships(self, client):
        """Demotion to Audience drops the user from every artist."""
        admin = create_admin(client)
        owner = set_role(client, admin, create_test_user(client), "Musician")
        member = set_role(client, admin, create_test_user(client), "Musician")
        band = create_test_artist(client, owner, members=[member["user_id"]])
        approve(client, admin, band["request"]["request_id"])

        request = client.post("/api/users/me/role-change", headers=auth_headers(member), json={
            "role": "Audience",
        }).json()
        approve(client, admin, request["request_id"])

        artist = client.get(f"/api/artists/{band['artist_id']}").json()["entity"]
        assert artist["members"] == [owner["user_id"]]
        # The member's solo artist had only them and is gone
        assert _owned_artists(client, admin, member["user_id"]) == []

    def test_director_chapters_written(self, client):
        """Directed chapters are copied onto the user row."""
        admin = create_admin(client)
        user = create_test_user(client)
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={
            "role": "Chapter Director",
            "director_chapters": ["north", "south"],
        }).json()
        approve(client, admin, request["request_id"])
        live = client.get(f"/api/users/{user['user_id']}").json()["entity"]
        assert live["director_chapters"] == ["north", "south"]

    def test_empty_director_chapters_match_preview(self, client):
        """Dropping every directed chapter previews and stores the same None."""
        admin = create_admin(client)
        user = create_test_user(client)
        first = client.post("/api/users/me/role-change", headers=auth_headers(user), json={
            "role": "Chapter Director",
            "director_chapters": ["north"],
        }).json()
        approve(client, admin, first["request_id"])

        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={
            "role": "Musician",
            "director_chapters": [],
        }).json()
        preview = client.get(f"/api/users/{user['user_id']}", headers=auth_headers(admin)).json()
        assert preview["showing_proposed"] is True
        assert preview["entity"]["director_chapters"] is None

        approve(client, admin, request["request_id"])
        live = client.get(f"/api/users/{user['user_id']}").json()["entity"]
        assert live["director_chapters"] == preview["entity"]["director_chapters"]


class TestUserEditApproval:

    def test_fields_overwritten(self, client):
        """Every profile field in the payload replaces the live value."""
        admin = create_admin(client)
        user = create_test_user(client, name="Before")
        request = client.put("/api/users/me/profile", headers=auth_headers(user), json={
            "name": "After",
            "location": "Tulsa",
            "bio": "Hello",
            "chapters": ["t1", "t2"],
            "role": "Audience",
        }).json()
        approve(client, admin, request["request_id"])

        live = client.get(f"/api/users/{user['user_id']}").json()["entity"]
        assert live["name"] == "After"
        assert live["location"] == "Tulsa"
        assert live["chapters"] == ["t1", "t2"]

    def test_musician_edit_seeds_solo_artist_from_payload(self, client):
        """A profile edit to Musician seeds the solo artist from the proposed fields."""
        admin = create_admin(client)
        user = client.post("/api/users/", json={
            "name": "Old", "email": "pic@example.org", "image": "/api/images/abc.png",
        }).json()
        request = client.put("/api/users/me/profile", headers=auth_headers(user), json={
            "name": "Stage Name",
            "location": "Boise",
            "chapters": ["b1"],
            "role": "Musician",
        }).json()
        approve(client, admin, request["request_id"])

        owned = _owned_artists(client, admin, user["user_id"])
        assert len(owned) == 1
        assert owned[0]["name"] == "Stage Name"
        assert owned[0]["location"] == "Boise"
        assert owned[0]["chapters"] == ["b1"]
        assert owned[0]["image"] == "/api/images/abc.png"


class TestArtistApproval:

    def test_artist_add_flips_status_only(self, client):
        """Approving an ARTIST_ADD changes nothing but the artist status."""
        admin = create_admin(client)
        owner = set_role(client, admin, create_test_user(client), "Musician")
        band = create_test_artist(client, owner, name="The Pending")

        before = client.get(f"/api/artists/{band['artist_id']}").json()["entity"]
        assert before["status"] == "PENDING"
        approve(client, admin, band["request"]["request_id"])
        after = client.get(f"/api/artists/{band['artist_id']}").json()["entity"]
        assert after["status"] == "APPROVED"
        assert {k: v for k, v in after.items() if k != "status"} == {k: v for k, v in before.items() if k != "status"}

    def test_artist_edit_overwrites(self, client):
        """Approved artist edits replace the artist fields."""
        admin = create_admin(client)
        owner = set_role(client, admin, create_test_user(client), "Musician")
        band = create_test_artist(client, owner)
        approve(client, admin, band["request"]["request_id"])

        request = client.put(f"/api/artists/{band['artist_id']}", headers=auth_headers(owner), json={
            "name": "Renamed Band",
            "bio": None,
            "image": "/api/images/new.png",
            "chapters": ["x"],
            "members": [owner["user_id"]],
        }).json()
        approve(client, admin, request["request_id"])

        artist = client.get(f"/api/artists/{band['artist_id']}").json()["entity"]
        assert artist["name"] == "Renamed Band"
        assert artist["bio"] is None
        assert artist["image"] == "/api/images/new.png"
        assert artist["chapters"] == ["x"]


class TestBookingApproval:

    def test_inquiry_flips_status(self, client):
        """Approving an inquiry marks the booking approved and keeps its dates."""
        admin = create_admin(client)
        user = create_test_user(client)
        booking = create_test_booking(client, user)
        approve(client, admin, booking["request"]["request_id"])
        view = client.get(f"/api/bookings/{booking['booking_id']}", headers=auth_headers(user)).json()
        assert view["entity"]["status"] == "APPROVED"
        assert len(view["entity"]["dates"]) == 1

    def test_edit_replaces_dates(self, client):
        """An approved booking edit replaces the dates with private rows."""
        admin = create_admin(client)
        user = create_test_user(client)
        booking = create_test_booking(client, user)
        approve(client, admin, booking["request"]["request_id"])

        request = client.put(f"/api/bookings/{booking['booking_id']}", headers=auth_headers(user), json={
            "name": "Jo Organizer",
            "email": "jo@example.org",
            "phone": "555-0199",
            "dates": [
                {"date": "2026-03-01", "time": "18:00"},
                {"date": "2026-03-02", "budget": ""},
                {"date": "2026-03-03", "event_type": "Gala"},
            ],
        }).json()
        approve(client, admin, request["request_id"])

        entity = client.get(f"/api/bookings/{booking['booking_id']}", headers=auth_headers(admin)).json()["entity"]
        assert entity["phone"] == "555-0199"
        assert [d["date"] for d in entity["dates"]] == ["2026-03-01", "2026-03-02", "2026-03-03"]
        assert all(d["is_public"] is False for d in entity["dates"])
        assert entity["dates"][1]["budget"] is None
        assert entity["dates"][2]["event_type"] == "Gala"


class TestRejection:

    def test_reject_leaves_entity_unchanged(self, client):
        """Rejection resolves the request without touching the user."""
        admin = create_admin(client)
        user = create_test_user(client, name="Keep")
        request = client.put("/api/users/me/profile", headers=auth_headers(user), json={
            "name": "Discard",
            "role": "Musician",
        }).json()

        resp = client.post(f"/api/requests/{request['request_id']}/reject", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["status"] == "REJECTED"
        live = client.get(f"/api/users/{user['user_id']}", headers=auth_headers(admin)).json()
        assert live["entity"]["name"] == "Keep"
        assert live["entity"]["role"] == "Audience"
        assert live["pending_request_id"] is None
        assert _owned_artists(client, admin, user["user_id"]) == []

    def test_reject_requires_admin(self, client):
        """Only admins may reject."""
        user = create_test_user(client)
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={"role": "Musician"}).json()
        resp = client.post(f"/api/requests/{request['request_id']}/reject", headers=auth_headers(user))
        assert resp.status_code == 403


class TestApprovalGuards:

    def test_unauthenticated(self, client):
        """Approval without identity headers is refused."""
        user = create_test_user(client)
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={"role": "Musician"}).json()
        assert client.post(f"/api/requests/{request['request_id']}/approve").status_code == 401

    def test_non_admin(self, client):
        """Only admins may approve."""
        user = create_test_user(client)
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={"role": "Musician"}).json()
        resp = client.post(f"/api/requests/{request['request_id']}/approve", headers=auth_headers(user))
        assert resp.status_code == 403

    def test_unknown_request(self, client):
        """Approving an unknown id is a 404."""
        admin = create_admin(client)
        resp = client.post("/api/requests/nope/approve", headers=auth_headers(admin))
        assert resp.status_code == 404

    def test_terminal_requests_cannot_move(self, client):
        """Resolved requests can be neither approved nor rejected again."""
        admin = create_admin(client)
        user = create_test_user(client)
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={"role": "Musician"}).json()
        approve(client, admin, request["request_id"])

        again = client.post(f"/api/requests/{request['request_id']}/approve", headers=auth_headers(admin))
        assert again.status_code == 400
        reject = client.post(f"/api/requests/{request['request_id']}/reject", headers=auth_headers(admin))
        assert reject.status_code == 400

    def test_malformed_payload_writes_nothing(self, client, db):
        """Unparseable payload data fails the approval and leaves the request pending."""
        admin = create_admin(client)
        user = create_test_user(client)
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={"role": "Musician"}).json()
        row = db.get(Request, request["request_id"])
        row.data = '{"role": "Rockstar"'
        db.commit()

        resp = client.post(f"/api/requests/{request['request_id']}/approve", headers=auth_headers(admin))
        assert resp.status_code == 422
        db.expire_all()
        assert db.get(Request, request["request_id"]).status.value == "PENDING"
        assert client.get(f"/api/users/{user['user_id']}").json()["entity"]["role"] == "Audience"

    def test_missing_target_writes_nothing(self, client, db):
        """A request whose artist is gone fails with 404 and stays pending."""
        admin = create_admin(client)
        owner = set_role(client, admin, create_test_user(client), "Musician")
        band = create_test_artist(client, owner)
        db.query(Artist).filter(Artist.artist_id == band["artist_id"]).delete()
        db.commit()

        resp = client.post(f"/api/requests/{band['request']['request_id']}/approve", headers=auth_headers(admin))
        assert resp.status_code == 404
        db.expire_all()
        assert db.get(Request, band["request"]["request_id"]).status.value == "PENDING"


class TestConcurrentResolution:
    """A request resolved by someone else mid-approval writes nothing."""

    def _resolve_elsewhere(self, db_engine, request_id, new_status):
        other = sessionmaker(bind=db_engine)()
        try:
            other.execute(update(Request).where(Request.request_id == request_id).values(status=new_status))
            other.commit()
        finally:
            other.close()

    def _racing_service(self, db, db_engine, policy, new_status):
        service = ApprovalService(db, policy)
        read = service._pending_request

        def read_then_resolve(request_id):
            request = read(request_id)
            self._resolve_elsewhere(db_engine, request_id, new_status)
            return request

        service._pending_request = read_then_resolve
        return service

    def test_approve_after_concurrent_reject(self, client, db, db_engine, policy):
        """Approval loses the race and leaves the user and artists untouched."""
        admin = create_admin(client)
        user = create_test_user(client)
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={"role": "Musician"}).json()

        service = self._racing_service(db, db_engine, policy, RequestStatus.rejected)
        with pytest.raises(RequestNotPending):
            service.approve(Actor(admin["user_id"], ADMIN_EMAIL), request["request_id"])

        db.expire_all()
        assert db.get(User, user["user_id"]).role == Role.audience
        assert db.query(Artist).filter(Artist.owner_id == user["user_id"]).count() == 0
        assert db.get(Request, request["request_id"]).status == RequestStatus.rejected

    def test_reject_after_concurrent_approve(self, client, db, db_engine, policy):
        """Rejection does not overwrite a status set in the meantime."""
        admin = create_admin(client)
        user = create_test_user(client)
        request = client.post("/api/users/me/role-change", headers=auth_headers(user), json={"role": "Musician"}).json()

        service = self._racing_service(db, db_engine, policy, RequestStatus.approved)
        with pytest.raises(RequestNotPending):
            service.reject(Actor(admin["user_id"], ADMIN_EMAIL), request["request_id"])

        db.expire_all()
        assert db.get(Request, request["request_id"]).status == RequestStatus.approved

    def test_direct_edit_of_resolved_review(self, client, db):
        """An admin edit tied to a request resolved since it was read is abandoned."""
        user = create_test_user(client, name="Unchanged")
        request = client.put("/api/users/me/profile", headers=auth_headers(user), json={
            "name": "Proposed",
            "role": "Audience",
        }).json()
        flip = request_service.status_statement(request["request_id"], RequestStatus.approved)
        db.execute(update(Request).where(Request.request_id == request["request_id"])
                   .values(status=RequestStatus.rejected))
        db.commit()

        rename = update(User).where(User.user_id == user["user_id"]).values(name="Overwritten")
        with pytest.raises(RequestNotPending):
            request_service.run_with_status_flip(db, request["request_id"], flip, [rename])

        db.expire_all()
        assert db.get(User, user["user_id"]).name == "Unchanged"
        assert db.get(Request, request["request_id"]).status == RequestStatus.rejected


class TestBatchRollback:

    def test_failing_statement_undoes_earlier_ones(self, client, db, policy):
        """A failure late in the batch rolls back every statement before it."""
        admin = create_admin(client)
        user = create_test_user(client)
        booking = create_test_booking(client, user)
        approve(client, admin, booking["request"]["request_id"])
        old_dates = [(d.date_id, d.date) for d in db.query(BookingDate).filter(BookingDate.booking_id == booking["booking_id"])]

        edit = client.put(f"/api/bookings/{booking['booking_id']}", headers=auth_headers(user), json={
            "name": "Jo Organizer",
            "email": "jo@example.org",
            "phone": "555-0199",
            "dates": [{"date": "2026-03-01"}],
        }).json()

        service = ApprovalService(db, policy)
        build = service.build_statements

        def build_with_broken_tail(request):
            # date is NOT NULL
            broken = insert(BookingDate).values(
                date_id=str(uuid.uuid4()), booking_id=booking["booking_id"], date=None,
            )
            return [*build(request), broken]

        service.build_statements = build_with_broken_tail
        with pytest.raises(IntegrityError):
            service.approve(Actor(admin["user_id"], ADMIN_EMAIL), edit["request_id"])

        db.expire_all()
        assert db.get(Booking, booking["booking_id"]).phone == "555-0100"
        dates = [(d.date_id, d.date) for d in db.query(BookingDate).filter(BookingDate.booking_id == booking["booking_id"])]
        assert dates == old_dates
        assert db.get(Request, edit["request_id"]).status == RequestStatus.pending
