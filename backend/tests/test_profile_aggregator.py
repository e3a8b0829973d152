"""Tests for flattening stored career records into a GenerationInput."""

import pytest
import sys
import os
from datetime import date

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from applytrack.exceptions import NotFoundError
from applytrack.models import Project, User
from applytrack.services.profile_aggregator import build_generation_input
from factories import (
    add_certification,
    add_education,
    add_skill,
    make_application,
    make_experience,
    make_project,
    make_user,
)


class TestAggregatorOrdering:
    """Deterministic ordering of every collection."""

    def test_bullets_follow_order_then_insertion(self, db):
        user = make_user(db)
        app = make_application(db, user)
        make_experience(db, user, bullets=[("third", 2), ("first", 0), ("second-a", 1), ("second-b", 1)])

        data = build_generation_input(db, user.id, app.id)
        assert data.experiences[0].bullets == ["first", "second-a", "second-b", "third"]

    def test_experiences_newest_first_undated_last(self, db):
        user = make_user(db)
        app = make_application(db, user)
        make_experience(db, user, company="Old", start=date(2015, 1, 1), end=date(2018, 1, 1))
        make_experience(db, user, company="Undated", start=None)
        make_experience(db, user, company="New", start=date(2021, 5, 1), current=True)

        data = build_generation_input(db, user.id, app.id)
        assert [e.company for e in data.experiences] == ["New", "Old", "Undated"]

    def test_projects_by_order_without_archived(self, db):
        user = make_user(db)
        app = make_application(db, user)
        make_project(db, user, title="Second", order=1)
        make_project(db, user, title="Hidden", order=0, archived=True)
        make_project(db, user, title="First", order=0)

        data = build_generation_input(db, user.id, app.id)
        assert [p.title for p in data.projects] == ["First", "Second"]

    def test_null_archived_flag_counts_as_active(self, db):
        """Rows written before the flag existed carry NULL, not false."""
        user = make_user(db)
        app = make_application(db, user)
        legacy = make_project(db, user, title="Legacy")
        db.query(Project).filter(Project.id == legacy.id).update({Project.archived: None})
        db.commit()

        data = build_generation_input(db, user.id, app.id)
        assert [p.title for p in data.projects] == ["Legacy"]

    def test_skills_and_certifications_in_insertion_order(self, db):
        user = make_user(db)
        app = make_application(db, user)
        add_skill(db, user, "SQL")
        add_skill(db, user, "Python")
        add_certification(db, user, "CKA")
        add_certification(db, user, "AWS SAA")

        data = build_generation_input(db, user.id, app.id)
        assert [s.name for s in data.skills] == ["SQL", "Python"]
        assert data.certifications == ["CKA", "AWS SAA"]

    def test_education_newest_first(self, db):
        user = make_user(db)
        app = make_application(db, user)
        add_education(db, user, degree="BSc", start=date(2010, 9, 1), end=date(2013, 6, 1))
        add_education(db, user, degree="MSc", start=date(2014, 9, 1), end=date(2016, 6, 1))

        data = build_generation_input(db, user.id, app.id)
        assert [e.degree for e in data.educations] == ["MSc", "BSc"]


class TestAggregatorFields:
    """Contact, job target and description override."""

    def test_contact_and_job(self, db):
        user = make_user(db, github="https://github.com/jane", location="Lisbon")
        app = make_application(db, user, title="SRE", company_name="Acme", platform="linkedin")

        data = build_generation_input(db, user.id, app.id)
        assert data.name == "Jane Doe"
        assert data.contact.email == "jane@example.com"
        assert data.contact.github == "https://github.com/jane"
        assert data.contact.location == "Lisbon"
        assert data.job.title == "SRE"
        assert data.job.company == "Acme"
        assert data.job.platform == "linkedin"

    def test_profile_email_overrides_account_email(self, db):
        user = make_user(db, email="login@example.com")
        user.profile.email = "resume@example.com"
        db.commit()
        app = make_application(db, user)

        assert build_generation_input(db, user.id, app.id).contact.email == "resume@example.com"

    def test_description_override(self, db):
        user = make_user(db)
        app = make_application(db, user, description="Stored text")

        assert build_generation_input(db, user.id, app.id).job.description == "Stored text"
        assert build_generation_input(db, user.id, app.id, "Pasted text").job.description == "Pasted text"

    def test_missing_description_is_empty(self, db):
        user = make_user(db)
        app = make_application(db, user, description=None)
        assert build_generation_input(db, user.id, app.id).job.description == ""

    def test_empty_profile_yields_empty_collections(self, db):
        user = make_user(db)
        app = make_application(db, user)
        data = build_generation_input(db, user.id, app.id)
        assert data.experiences == []
        assert data.projects == []
        assert data.skills == []
        assert data.educations == []
        assert data.certifications == []


class TestAggregatorNotFound:
    """Missing or foreign records."""

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError, match="User"):
            build_generation_input(db, 999, 1)

    def test_user_without_profile(self, db):
        user = User(name="No Profile", email="np@example.com")
        db.add(user)
        db.commit()
        with pytest.raises(NotFoundError, match="Profile"):
            build_generation_input(db, user.id, 1)

    def test_application_of_another_user(self, db):
        owner = make_user(db, email="owner@example.com")
        intruder = make_user(db, email="intruder@example.com")
        app = make_application(db, owner)
        with pytest.raises(NotFoundError, match="Job application"):
            build_generation_input(db, intruder.id, app.id)
