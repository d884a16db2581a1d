"""Workspace Templates — verifies template structure used by provisioning."""

import pytest

from eventdesk.core.workspace_templates import get_template


def test_conference_structure():
    template = get_template("conference")
    assert [d.name for d in template.departments] == ["Operations", "Growth", "Content"]
    assert sum(len(d.committees) for d in template.departments) == 7
    assert len(template.tasks) == 12
    assert sum(1 for t in template.tasks if t.target_level == "ROOT") == 2
    assert len(template.milestones) == 4


def test_hackathon_structure():
    template = get_template("hackathon")
    assert sum(len(d.committees) for d in template.departments) == 5
    assert len(template.tasks) == 11


def test_blank_is_empty():
    template = get_template("blank")
    assert template.departments == ()
    assert template.tasks == ()
    assert template.milestones == ()


def test_lookup():
    assert get_template(None) is None
    with pytest.raises(KeyError):
        get_template("festival")
