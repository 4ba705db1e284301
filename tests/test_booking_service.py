"""Unit tests for booking commit (conflict re-check, QR payload, store failures)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import threading
import pytest
from datetime import date, datetime, time
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from spoton.database import create_tables
from spoton.services import booking_service
from spoton.models import Booking, Building, SpotType, ParkingSpot
from spoton.services.booking_service import (
    commit_booking, get_booking, get_user_bookings, get_active_booking, list_bookings,
)
from spoton.services.availability_service import available_spots
from spoton.services.change_feed import ChangeFeed
from spoton.services.time_window import TimeWindow
from spoton.services.errors import InvalidInput, SpotUnavailable, StoreUnavailable
from conftest import BOOKING_DAY, TODAY, fake_qr


def window(start, end, day=BOOKING_DAY):
    return TimeWindow.parse(day, start, end)


def commit(db, spot, start, end, user="user-alice", day=BOOKING_DAY, **kwargs):
    return commit_booking(db, user, spot.id, window(start, end, day), qr_encoder=fake_qr, today=TODAY, **kwargs)


class TestCommitBooking:
    def test_creates_active_booking(self, db, campus):
        booking = commit(db, campus.spot1, "09:00", "10:00")
        assert booking.id is not None
        assert booking.status == "active"
        assert booking.spot_id == campus.spot1.id
        assert booking.start_time == time(9, 0) and booking.end_time == time(10, 0)
        assert db.query(Booking).count() == 1

    def test_back_to_back_bookings_both_succeed(self, db, campus):
        commit(db, campus.spot1, "09:00", "10:00")
        commit(db, campus.spot1, "10:00", "11:00", user="user-bob")
        assert db.query(Booking).filter(Booking.spot_id == campus.spot1.id).count() == 2

    def test_overlapping_booking_rejected(self, db, campus):
        commit(db, campus.spot1, "09:00", "10:30")
        with pytest.raises(SpotUnavailable):
            commit(db, campus.spot1, "10:00", "11:00", user="user-bob")
        assert db.query(Booking).count() == 1

    def test_same_window_other_spot_succeeds(self, db, campus):
        commit(db, campus.spot1, "09:00", "10:00")
        commit(db, campus.spot2, "09:00", "10:00", user="user-bob")
        assert db.query(Booking).count() == 2

    def test_cancelled_booking_frees_spot(self, db, campus):
        first = commit(db, campus.spot1, "09:00", "10:00")
        first.status = "cancelled"
        db.commit()
        commit(db, campus.spot1, "09:00", "10:00", user="user-bob")

    def test_scenario_from_availability_to_commit(self, db, campus):
        commit(db, campus.spot1, "09:00", "10:00")
        result = available_spots(db, campus.building.id, window("09:30", "10:30"), today=TODAY)
        assert [s.spot_number for s in result if s.is_available] == [2]
        commit(db, campus.spot1, "10:00", "11:00", user="user-bob")

    def test_reported_available_spot_can_be_committed(self, db, campus):
        commit(db, campus.spot2, "09:00", "12:00")
        w = window("10:00", "11:00")
        for spot in available_spots(db, campus.building.id, w, today=TODAY):
            if spot.is_available:
                booking = commit_booking(db, "user-bob", spot.spot_id, w, qr_encoder=fake_qr, today=TODAY)
                assert booking.status == "active"

    def test_qr_payload_contains_booking_and_window(self, db, campus):
        booking = commit(db, campus.spot1, "09:00", "10:00")
        assert booking.qr_code.startswith("qr:")
        payload = json.loads(booking.qr_code[3:])
        assert payload == {
            "bookingId": booking.id, "spotId": campus.spot1.id, "userId": "user-alice",
            "date": "2025-06-01", "startTime": "09:00", "endTime": "10:00",
        }

    def test_real_qr_encoder_produces_png_data_url(self, db, campus):
        booking = commit_booking(db, "user-alice", campus.spot1.id, window("09:00", "10:00"), today=TODAY)
        assert booking.qr_code.startswith("data:image/png;base64,")

    def test_unknown_spot(self, db, campus):
        with pytest.raises(InvalidInput) as exc:
            commit_booking(db, "user-alice", 9999, window("09:00", "10:00"), qr_encoder=fake_qr, today=TODAY)
        assert exc.value.not_found

    def test_inactive_spot_unavailable(self, db, campus):
        campus.spot1.is_active = False
        db.commit()
        with pytest.raises(SpotUnavailable):
            commit(db, campus.spot1, "09:00", "10:00")

    def test_inactive_building_rejected(self, db, campus):
        campus.building.is_active = False
        db.commit()
        with pytest.raises(InvalidInput) as exc:
            commit(db, campus.spot1, "09:00", "10:00")
        assert exc.value.not_found
        assert db.query(Booking).count() == 0

    def test_unknown_spot_ids_do_not_grow_lock_pool(self, db, campus):
        before = len(booking_service._spot_locks)
        for spot_id in range(100000, 100200):
            with pytest.raises(InvalidInput):
                commit_booking(db, "user-alice", spot_id, window("09:00", "10:00"),
                               qr_encoder=fake_qr, today=TODAY)
        assert len(booking_service._spot_locks) == before == booking_service.LOCK_STRIPES

    def test_same_spot_always_maps_to_same_lock(self):
        assert booking_service._spot_lock(7) is booking_service._spot_lock(7)
        assert booking_service._spot_lock(7) is booking_service._spot_lock(7 + booking_service.LOCK_STRIPES)

    def test_past_date_rejected(self, db, campus):
        with pytest.raises(InvalidInput):
            commit_booking(db, "user-alice", campus.spot1.id, window("09:00", "10:00"),
                           qr_encoder=fake_qr, today=date(2025, 7, 1))
        assert db.query(Booking).count() == 0

    def test_missing_user_rejected(self, db, campus):
        with pytest.raises(InvalidInput):
            commit(db, campus.spot1, "09:00", "10:00", user="")

    def test_qr_failure_leaves_no_row(self, db, campus):
        def broken(payload):
            raise RuntimeError("encoder down")

        with pytest.raises(RuntimeError):
            commit_booking(db, "user-alice", campus.spot1.id, window("09:00", "10:00"),
                           qr_encoder=broken, today=TODAY)
        assert db.query(Booking).count() == 0

    def test_store_failure_raises_store_unavailable(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

        with pytest.raises(StoreUnavailable):
            commit_booking(db, "user-alice", 1, window("09:00", "10:00"), qr_encoder=fake_qr, today=TODAY)
        db.rollback.assert_called()
        db.commit.assert_not_called()

    def test_publishes_insert_on_feed(self, db, campus):
        feed = ChangeFeed()
        seen = []
        feed.subscribe("bookings", seen.append)
        booking = commit(db, campus.spot1, "09:00", "10:00", feed=feed)
        assert [(e.action, e.row.id) for e in seen] == [("insert", booking.id)]


class TestConcurrentCommits:
    def test_at_most_one_winner(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
        create_tables(bind=engine)
        Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

        setup = Session()
        spot_type = SpotType(name="regular", is_shaded=False)
        building = Building(code="RACE", name="Race", is_active=True)
        setup.add_all([spot_type, building])
        setup.commit()
        spot = ParkingSpot(building_id=building.id, spot_type_id=spot_type.id, spot_number=1, is_active=True)
        setup.add(spot)
        setup.commit()
        spot_id = spot.id
        setup.close()

        # Every pair shares 09:25-09:30
        windows = [("09:00", "10:00"), ("09:15", "10:30"), ("08:00", "09:30"),
                   ("09:20", "09:40"), ("09:00", "10:00"), ("09:25", "11:00")]
        barrier = threading.Barrier(len(windows))
        outcomes = []

        def attempt(i, start, end):
            session = Session()
            try:
                barrier.wait()
                commit_booking(session, f"user-{i}", spot_id, window(start, end),
                               qr_encoder=fake_qr, today=TODAY)
                outcomes.append("ok")
            except SpotUnavailable:
                outcomes.append("conflict")
            finally:
                session.close()

        threads = [threading.Thread(target=attempt, args=(i, s, e)) for i, (s, e) in enumerate(windows)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == len(windows) - 1

        check = Session()
        assert check.query(Booking).filter(Booking.spot_id == spot_id).count() == 1
        check.close()
        engine.dispose()


class TestBookingLookups:
    def test_get_booking_unknown(self, db, campus):
        with pytest.raises(InvalidInput):
            get_booking(db, 42)

    def test_user_bookings_newest_first(self, db, campus):
        commit(db, campus.spot1, "09:00", "10:00")
        commit(db, campus.spot1, "09:00", "10:00", day=date(2025, 6, 3))
        commit(db, campus.spot2, "12:00", "13:00")
        commit(db, campus.spot2, "08:00", "09:00", user="user-bob")
        result = get_user_bookings(db, "user-alice")
        assert [(b.date.day, b.start_time.hour) for b in result] == [(3, 9), (1, 12), (1, 9)]

    def test_active_booking_contains_now(self, db, campus):
        booking = commit(db, campus.spot1, "09:00", "10:00")
        assert get_active_booking(db, "user-alice", now=datetime(2025, 6, 1, 9, 30)).id == booking.id
        assert get_active_booking(db, "user-alice", now=datetime(2025, 6, 1, 10, 0)) is None
        assert get_active_booking(db, "user-bob", now=datetime(2025, 6, 1, 9, 30)) is None

    def test_list_bookings_filters(self, db, campus):
        first = commit(db, campus.spot1, "09:00", "10:00")
        commit(db, campus.spot2, "09:00", "10:00", day=date(2025, 6, 2))
        first.status = "cancelled"
        db.commit()
        assert len(list_bookings(db)) == 2
        assert [b.id for b in list_bookings(db, statuses=["cancelled"])] == [first.id]
        assert len(list_bookings(db, on_date=date(2025, 6, 2))) == 1

    def test_list_bookings_unknown_status(self, db, campus):
        with pytest.raises(InvalidInput):
            list_bookings(db, statuses=["pending"])
