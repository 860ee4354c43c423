"""
Relationship resolver tests: bundles, threads, statistics.
"""
from datetime import date, datetime, timezone

import pytest

from portal.core.exceptions import NotFoundError
from portal.models.entities import ApprovalItem, Message, Milestone, Project


def test_bundle_unknown_project_raises(resolver):
    with pytest.raises(NotFoundError):
        resolver.get_project_bundle("p-missing")


def test_empty_project_resolves_with_empty_lists(store, resolver):
    project = store.projects.upsert(Project(organization_id="org2", name="Lodge Tour"))

    bundle = resolver.get_project_bundle(project.id)

    assert bundle.project == project
    assert bundle.milestones == []
    assert bundle.messages == []
    assert bundle.files == []
    assert bundle.approvals == []
    assert bundle.threads == {}


def test_bundle_collects_only_its_project(resolver):
    bundle = resolver.get_project_bundle("p2")
    assert bundle.project.name == "Holiday Campaign"
    assert bundle.milestones == []
    assert bundle.files == []


def test_bundle_p1_contents(resolver):
    bundle = resolver.get_project_bundle("p1")
    assert [m.id for m in bundle.milestones] == ["m1", "m2", "m3", "m4"]
    assert [m.id for m in bundle.messages] == ["msg1", "msg2", "msg3"]
    assert [f.id for f in bundle.files] == ["f1", "f2", "f3", "f4"]
    assert [a.id for a in bundle.approvals] == ["a1"]
    assert bundle.threads == {"a1": []}


def test_general_messages_sorted_by_creation_time(store, resolver):
    early = store.messages.upsert(Message(
        project_id="p1", sender_id="u1", sender_name="Sarah Producer", body="Kickoff call notes",
        created_at=datetime(2023, 3, 1, 9, 0, tzinfo=timezone.utc),
    ))
    bundle = resolver.get_project_bundle("p1")
    assert [m.id for m in bundle.messages] == [early.id, "msg1", "msg2", "msg3"]


def test_milestones_sorted_by_due_date(store, resolver):
    store.milestones.upsert(Milestone(project_id="p2", title="Final Mix", due_date=date(2024, 3, 1)))
    store.milestones.upsert(Milestone(project_id="p2", title="Kickoff", due_date=date(2024, 1, 15)))

    milestones = resolver.get_project_bundle("p2").milestones

    assert [m.due_date for m in milestones] == [date(2024, 1, 15), date(2024, 3, 1)]


def test_threads_keep_insertion_order(store, resolver):
    later = store.messages.upsert(Message(
        project_id="p1", sender_id="u2", sender_name="Mike Client", body="Second pass notes",
        approval_item_id="a1", created_at=datetime(2023, 5, 2, tzinfo=timezone.utc),
    ))
    earlier = store.messages.upsert(Message(
        project_id="p1", sender_id="u1", sender_name="Sarah Producer", body="Backdated reply",
        approval_item_id="a1", created_at=datetime(2023, 5, 1, tzinfo=timezone.utc),
    ))
    bundle = resolver.get_project_bundle("p1")

    assert [m.id for m in bundle.threads["a1"]] == [later.id, earlier.id]
    assert [m.id for m in resolver.get_approval_thread("a1")] == [later.id, earlier.id]
    assert later.id not in [m.id for m in bundle.messages]


def test_approval_thread_unknown_item(resolver):
    with pytest.raises(NotFoundError):
        resolver.get_approval_thread("a-missing")


def test_pending_approvals(store, resolver):
    store.approvals.upsert(ApprovalItem(
        project_id="p1", title="Cutdown 15s", link_to_review="https://cdn/15s.mp4",
        status="Approved",
    ))
    assert [a.id for a in resolver.pending_approvals("p1")] == ["a1"]
    assert resolver.pending_approvals("p2") == []


def test_projects_for_organization(resolver):
    assert [p.id for p in resolver.projects_for_organization("org1")] == ["p1", "p2"]
    assert resolver.projects_for_organization("org2") == []
    with pytest.raises(NotFoundError):
        resolver.projects_for_organization("org-missing")


def test_stats(store, resolver):
    stats = resolver.get_stats()
    assert stats.to_dict() == {"active_projects": 2, "total_orgs": 2, "pending_approvals": 1}

    store.approvals.upsert(ApprovalItem(
        project_id="p2", title="Holiday Spot A", link_to_review="https://cdn/a.mp4",
    ))
    assert resolver.get_stats().pending_approvals == 2
