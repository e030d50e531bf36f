"""Review consensus: unanimous approval, single rejection closes the review."""

import pytest

from portal.core.errors import (
    AlreadyReviewed, InvalidInput, NotAuthorized, NotFound, ReviewClosed
)
from portal.services import proposal_service, review_service


@pytest.fixture
def panel_of(physics):
    by_id = {f.user_id: f for f in physics}

    def _panel(proposal):
        return [by_id[rid] for rid in proposal["reviewer_ids"]]
    return _panel


def test_four_approvals_keep_proposal_pending(physics, submit, panel_of, load_of):
    proposal = submit(physics[0])
    panel = panel_of(proposal)

    for reviewer in panel[:4]:
        proposal = review_service.approve(reviewer, proposal["proposal_id"])

    assert proposal["status"] == "pending"
    assert proposal["approvals"] == 4
    assert all(load_of(r) == 1 for r in panel)


def test_fifth_approval_approves_and_releases_load(physics, submit, panel_of, load_of):
    proposal = submit(physics[0])
    panel = panel_of(proposal)

    for reviewer in panel:
        proposal = review_service.approve(reviewer, proposal["proposal_id"])

    assert proposal["status"] == "approved"
    assert proposal["approvals"] == 5
    assert [r["decision"] for r in proposal["reviews"]] == ["approve"] * 5
    assert all(load_of(r) == 0 for r in panel)


def test_rejection_after_two_approvals_rejects(physics, submit, panel_of, load_of):
    proposal = submit(physics[0])
    panel = panel_of(proposal)
    pid = proposal["proposal_id"]

    review_service.approve(panel[0], pid)
    review_service.approve(panel[1], pid)
    proposal = review_service.reject(panel[2], pid, "needs more data")

    assert proposal["status"] == "rejected"
    assert proposal["reviews"][-1]["comment"] == "needs more data"
    assert all(load_of(r) == 0 for r in panel)


def test_no_reviews_accepted_after_rejection(physics, submit, panel_of, load_of):
    proposal = submit(physics[0])
    panel = panel_of(proposal)
    pid = proposal["proposal_id"]
    review_service.reject(panel[0], pid, "out of scope")

    with pytest.raises(ReviewClosed):
        review_service.approve(panel[1], pid)

    proposal = proposal_service.get_proposal(pid)
    assert proposal["status"] == "rejected"
    assert len(proposal["reviews"]) == 1
    # counters were released exactly once
    assert all(load_of(r) == 0 for r in panel)


def test_load_released_once_per_proposal(physics, submit, panel_of, load_of):
    a, b = physics[0], physics[1]
    first = submit(a)
    submit(b)
    # C..F sit on both panels
    shared = [f for f in physics[2:]]
    assert all(load_of(f) == 2 for f in shared)

    review_service.reject(panel_of(first)[1], first["proposal_id"], "duplicate work")

    assert all(load_of(f) == 1 for f in shared)


def test_non_panel_faculty_cannot_review(make_user, submit):
    faculty = [make_user(f"60000{i}", "faculty", research_area="Optics") for i in range(1, 8)]
    proposal = submit(faculty[0])
    outsider = faculty[6]
    assert outsider.user_id not in proposal["reviewer_ids"]

    with pytest.raises(NotAuthorized):
        review_service.approve(outsider, proposal["proposal_id"])
    with pytest.raises(NotAuthorized):
        review_service.approve(faculty[0], proposal["proposal_id"])


def test_students_cannot_review(physics, submit, make_student):
    proposal = submit(physics[0])
    with pytest.raises(NotAuthorized):
        review_service.approve(make_student(), proposal["proposal_id"])


def test_second_decision_from_same_reviewer_fails(physics, submit, panel_of):
    proposal = submit(physics[0])
    reviewer = panel_of(proposal)[0]
    pid = proposal["proposal_id"]
    review_service.approve(reviewer, pid)

    with pytest.raises(AlreadyReviewed):
        review_service.approve(reviewer, pid)
    with pytest.raises(AlreadyReviewed):
        review_service.reject(reviewer, pid, "changed my mind")

    proposal = proposal_service.get_proposal(pid)
    assert proposal["approvals"] == 1
    assert proposal["status"] == "pending"
    assert len(proposal["reviews"]) == 1


@pytest.mark.parametrize("comment", [None, "", "   "])
def test_reject_requires_feedback(physics, submit, panel_of, comment):
    proposal = submit(physics[0])
    reviewer = panel_of(proposal)[0]

    with pytest.raises(InvalidInput):
        review_service.record_review(reviewer, proposal["proposal_id"], "reject", comment)

    assert proposal_service.get_proposal(proposal["proposal_id"])["reviews"] == []


def test_feedback_length_limit(physics, submit, panel_of):
    proposal = submit(physics[0])
    reviewer = panel_of(proposal)[0]

    with pytest.raises(InvalidInput):
        review_service.reject(reviewer, proposal["proposal_id"], "x" * 2501)
    proposal = review_service.reject(reviewer, proposal["proposal_id"], "x" * 2500)
    assert proposal["status"] == "rejected"


def test_unknown_proposal(physics):
    with pytest.raises(NotFound):
        review_service.approve(physics[1], 9999)


def test_review_queue_lists_only_unreviewed(physics, submit, panel_of):
    proposal = submit(physics[0])
    first, second = panel_of(proposal)[:2]

    assert [p["proposal_id"] for p in proposal_service.list_awaiting_review(first)] == [proposal["proposal_id"]]
    review_service.approve(first, proposal["proposal_id"])

    assert proposal_service.list_awaiting_review(first) == []
    assert len(proposal_service.list_awaiting_review(second)) == 1
    assert proposal_service.list_awaiting_review(physics[0]) == []
