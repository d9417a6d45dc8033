import os
import tempfile
import threading
import unittest
from datetime import datetime, timedelta
from unittest import mock

from sqlalchemy import update

from factories import add_account, add_store, make_database, make_hasher
from storerate.core.errors import NotFoundError, ValidationError
from storerate.model.rating import Rating
from storerate.repository import rating as rating_repository
from storerate.service.locks import KeyedLock
from storerate.service.rating import RatingEngine


class StepClock:
    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(minutes=1)
        return current


class RatingEngineTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.hasher = make_hasher()

    def setUp(self):
        self.engine, self.Session = make_database()
        self.db = self.Session()
        self.user = add_account(self.db, self.hasher, "rater@example.com")
        self.store = add_store(self.db)
        self.ratings = RatingEngine(self.db, clock=StepClock())

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def rows_for(self, user_id, store_id):
        return self.db.query(Rating).filter_by(user_id=user_id, store_id=store_id).all()

    def test_sqlite_uses_native_upsert(self):
        self.assertTrue(self.ratings.native_upsert)

    def test_first_submission_creates_one_row(self):
        rating = self.ratings.submit(self.user.id, self.store.id, 3)
        self.assertEqual(rating.score, 3)
        self.assertEqual(rating.created_at, rating.updated_at)
        self.assertEqual(len(self.rows_for(self.user.id, self.store.id)), 1)

    def test_resubmission_replaces_score_in_place(self):
        first = self.ratings.submit(self.user.id, self.store.id, 1)
        first_id, created_at = first.id, first.created_at

        second = self.ratings.submit(self.user.id, self.store.id, "5")

        rows = self.rows_for(self.user.id, self.store.id)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].score, 5)
        self.assertEqual(second.id, first_id)
        self.assertEqual(second.created_at, created_at)
        self.assertGreater(second.updated_at, created_at)
        self.assertEqual(self.ratings.average_for(self.store.id), 5.0)

    def test_invalid_scores_are_rejected_before_writing(self):
        for raw in [0, 6, "abc", None, 2.5]:
            with self.assertRaises(ValidationError):
                self.ratings.submit(self.user.id, self.store.id, raw)
        self.assertEqual(self.rows_for(self.user.id, self.store.id), [])

    def test_unknown_store_is_not_found(self):
        with self.assertRaises(NotFoundError):
            self.ratings.submit(self.user.id, 9999, 4)
        with self.assertRaises(NotFoundError):
            self.ratings.average_for(9999)

    def test_average_is_zero_without_ratings(self):
        self.assertEqual(self.ratings.average_for(self.store.id), 0)

    def test_average_of_three_four_five(self):
        for index, score in enumerate([3, 4, 5]):
            user = add_account(self.db, self.hasher, f"user{index}@example.com")
            self.ratings.submit(user.id, self.store.id, score)
        self.assertEqual(self.ratings.average_for(self.store.id), 4.0)

    def test_average_rounds_half_up_to_one_decimal(self):
        for index, score in enumerate([1, 1, 1, 2]):
            user = add_account(self.db, self.hasher, f"user{index}@example.com")
            self.ratings.submit(user.id, self.store.id, score)
        self.assertEqual(self.ratings.average_for(self.store.id), 1.3)

    def test_average_only_counts_the_store_asked_for(self):
        other = add_store(self.db, email="other@example.com")
        self.ratings.submit(self.user.id, self.store.id, 2)
        self.ratings.submit(self.user.id, other.id, 5)
        self.assertEqual(self.ratings.average_for(self.store.id), 2.0)
        self.assertEqual(self.ratings.average_for(other.id), 5.0)

    def test_serialized_path_keeps_one_row(self):
        fallback = RatingEngine(self.db, native_upsert=False, clock=StepClock())
        fallback.submit(self.user.id, self.store.id, 1)
        rating = fallback.submit(self.user.id, self.store.id, 4)
        self.assertEqual(rating.score, 4)
        self.assertEqual(len(self.rows_for(self.user.id, self.store.id)), 1)


class ConcurrentRatingTests(unittest.TestCase):
    """Threads hitting the same (user, store) pair through separate sessions."""

    @classmethod
    def setUpClass(cls):
        cls.hasher = make_hasher()

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        url = "sqlite:///" + os.path.join(self.tmpdir.name, "ratings.db")
        self.engine, self.Session = make_database(url)
        with self.Session() as db:
            self.user_id = add_account(db, self.hasher, "rater@example.com").id
            self.store_id = add_store(db).id

    def tearDown(self):
        self.engine.dispose()
        self.tmpdir.cleanup()

    def race(self, scores, native_upsert, rounds=10):
        locks = KeyedLock()
        barrier = threading.Barrier(len(scores))
        errors = []

        def worker(score):
            db = self.Session()
            try:
                engine = RatingEngine(db, locks=locks, native_upsert=native_upsert)
                barrier.wait()
                for _ in range(rounds):
                    engine.submit(self.user_id, self.store_id, score)
            except Exception as exc:
                errors.append(exc)
            finally:
                db.close()

        threads = [threading.Thread(target=worker, args=(score,)) for score in scores]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return errors

    def assert_single_row(self, allowed):
        with self.Session() as db:
            rows = db.query(Rating).filter_by(user_id=self.user_id, store_id=self.store_id).all()
        self.assertEqual(len(rows), 1)
        self.assertIn(rows[0].score, allowed)

    def test_native_upsert_never_duplicates(self):
        self.assertEqual(self.race([2, 4], native_upsert=True), [])
        self.assert_single_row({2, 4})

    def test_serialized_upsert_never_duplicates(self):
        self.assertEqual(self.race([1, 5, 3], native_upsert=False), [])
        self.assert_single_row({1, 5, 3})

    def test_submit_reports_its_own_write_not_a_later_one(self):
        for native_upsert in (True, False):
            with self.Session() as db:
                real_commit = db.commit

                def commit_then_overwrite():
                    real_commit()
                    with self.Session() as other:
                        other.execute(
                            update(Rating.__table__)
                            .where(Rating.__table__.c.user_id == self.user_id)
                            .values(score=1)
                        )
                        other.commit()

                with mock.patch.object(db, "commit", side_effect=commit_then_overwrite):
                    rating = RatingEngine(db, native_upsert=native_upsert).submit(self.user_id, self.store_id, 5)

            self.assertEqual(rating.score, 5, native_upsert)
            self.assert_single_row({1})

    def test_insert_conflict_from_another_writer_retries_as_update(self):
        real_update = rating_repository.update_rating
        calls = []

        def update_racing_another_process(db, user_id, store_id, score, now):
            calls.append(score)
            if len(calls) == 1:
                # the pair is inserted elsewhere right after our update missed it
                with self.Session() as other:
                    other.add(Rating(user_id=user_id, store_id=store_id, score=2, created_at=now, updated_at=now))
                    other.commit()
                return 0
            return real_update(db, user_id, store_id, score, now)

        with self.Session() as db, mock.patch.object(
            rating_repository, "update_rating", side_effect=update_racing_another_process
        ):
            rating = RatingEngine(db, native_upsert=False).submit(self.user_id, self.store_id, 5)
            self.assertEqual(rating.score, 5)

        self.assertEqual(len(calls), 2)
        self.assert_single_row({5})


if __name__ == "__main__":
    unittest.main()
