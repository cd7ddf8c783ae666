"""Tests for SkillGraph and CompetencyGraph (F1)."""

import pytest

from skills_engine.core.competency_graph import CompetencyGraph
from skills_engine.core.errors import NotFoundError
from skills_engine.core.skill_graph import SkillGraph
from skills_engine.db.competencies_repository import SqliteCompetencyRepository
from skills_engine.db.skills_repository import SqliteSkillRepository


@pytest.fixture
def skill_graph(graph_db):
    return SkillGraph(SqliteSkillRepository(graph_db))


@pytest.fixture
def competency_graph(graph_db, skill_graph):
    return CompetencyGraph(SqliteCompetencyRepository(graph_db), skill_graph)


def _ids(items):
    return [item.competency_id for item in items]


class TestSkillGraph:
    """Leaf tests and name lookup."""

    def test_leaf_skill(self, skill_graph):
        assert skill_graph.is_leaf("s-closures") is True

    def test_parent_skill_is_not_leaf(self, skill_graph):
        assert skill_graph.is_leaf("s-js") is False

    def test_unknown_skill_raises(self, skill_graph):
        with pytest.raises(NotFoundError):
            skill_graph.is_leaf("s-missing")

    def test_find_by_name_is_case_insensitive_and_trimmed(self, skill_graph):
        skill = skill_graph.find_by_name("  closures ")
        assert skill is not None
        assert skill.skill_id == "s-closures"

    def test_find_by_name_blank(self, skill_graph):
        assert skill_graph.find_by_name("   ") is None

    def test_leaf_descendants(self, skill_graph):
        leaves = skill_graph.get_leaf_descendants("s-js")
        assert sorted(s.skill_id for s in leaves) == ["s-closures", "s-promises"]

    def test_leaf_descendants_of_leaf_is_itself(self, skill_graph):
        leaves = skill_graph.get_leaf_descendants("s-html")
        assert [s.skill_id for s in leaves] == ["s-html"]

    def test_ancestor_ids(self, skill_graph):
        assert skill_graph.get_ancestor_ids("s-closures") == ["s-js"]


class TestRequiredMgs:
    """Flattening of required leaf skills."""

    def test_linked_parent_skill_contributes_leaves(self, competency_graph):
        assert competency_graph.get_required_mgs_ids("c-js") == {"s-closures", "s-promises"}

    def test_flattens_sub_competencies(self, competency_graph):
        assert competency_graph.get_required_mgs_ids("c-frontend") == {
            "s-html",
            "s-closures",
            "s-promises",
            "s-css",
        }

    def test_no_duplicates(self, competency_graph):
        mgs = competency_graph.get_required_mgs("c-frontend")
        ids = [s.skill_id for s in mgs]
        assert len(ids) == len(set(ids))

    def test_unknown_competency_raises(self, competency_graph):
        with pytest.raises(NotFoundError):
            competency_graph.get_required_mgs("c-missing")

    def test_by_name_uses_aliases(self, competency_graph):
        mgs = competency_graph.get_required_mgs_by_name("FRONT-END")
        assert len(mgs) == 4

    def test_by_unknown_name_raises(self, competency_graph):
        with pytest.raises(NotFoundError):
            competency_graph.get_required_mgs_by_name("Quantum Basket Weaving")

    def test_results_are_memoized(self, competency_graph, monkeypatch):
        competency_graph.get_required_mgs("c-js")

        def fail(*args, **kwargs):
            raise AssertionError("repository should not be queried again")

        monkeypatch.setattr(competency_graph.repository, "get_linked_skill_ids", fail)
        assert competency_graph.get_required_mgs_ids("c-js") == {"s-closures", "s-promises"}


class TestAncestry:
    """Ancestor chains and skill ownership."""

    def test_parent_links_nearest_first(self, competency_graph):
        links = competency_graph.get_parent_links("c-js")
        assert [link.competency.competency_id for link in links] == ["c-frontend", "c-fullstack"]
        assert all(link.depth == 1 for link in links)
        assert all(link.child_id == "c-js" for link in links)

    def test_root_has_no_ancestors(self, competency_graph):
        assert competency_graph.get_ancestors("c-frontend") == []

    def test_direct_competencies_walk_skill_ancestors(self, competency_graph):
        # Closures is not linked itself; its parent JavaScript is
        assert _ids(competency_graph.get_direct_competencies_by_skill("s-closures")) == ["c-js"]

    def test_competencies_by_skill_adds_ancestors(self, competency_graph):
        assert _ids(competency_graph.get_competencies_by_skill("s-closures")) == [
            "c-js",
            "c-frontend",
            "c-fullstack",
        ]

    def test_competencies_by_skill_deduplicated(self, competency_graph):
        ids = _ids(competency_graph.get_competencies_by_skill("s-html"))
        assert ids == ["c-frontend"]

    def test_unlinked_skill_has_no_competencies(self, competency_graph):
        assert competency_graph.get_competencies_by_skill("s-go") == []

    def test_deep_chain(self, db_path):
        from skills_engine.db.graph_loader import load_graph

        load_graph(
            {
                "skills": [{"id": "s1", "name": "S1"}],
                "competencies": [
                    {"id": "leaf", "name": "Leaf", "skills": ["s1"]},
                    {"id": "mid", "name": "Mid", "sub_competencies": ["leaf"]},
                    {"id": "top", "name": "Top", "sub_competencies": ["mid"]},
                ],
            },
            db_path=db_path,
        )
        graph = CompetencyGraph(
            SqliteCompetencyRepository(db_path), SkillGraph(SqliteSkillRepository(db_path))
        )

        links = graph.get_parent_links("leaf")
        assert [(l.competency.competency_id, l.child_id, l.depth) for l in links] == [
            ("mid", "leaf", 1),
            ("top", "mid", 2),
        ]
        assert graph.get_required_mgs_ids("top") == {"s1"}


class TestCycles:
    """Sub-competency cycles never leave truncated MGS sets behind."""

    @pytest.fixture
    def cyclic_graph(self, db_path):
        from skills_engine.db.graph_loader import load_graph

        load_graph(
            {
                "skills": [{"id": "s-a", "name": "A"}, {"id": "s-b", "name": "B"}],
                "competencies": [
                    {"id": "c-a", "name": "Alpha", "skills": ["s-a"], "sub_competencies": ["c-b"]},
                    {"id": "c-b", "name": "Beta", "skills": ["s-b"], "sub_competencies": ["c-a"]},
                ],
            },
            db_path=db_path,
        )
        return CompetencyGraph(
            SqliteCompetencyRepository(db_path), SkillGraph(SqliteSkillRepository(db_path))
        )

    def test_result_independent_of_call_order(self, cyclic_graph):
        assert cyclic_graph.get_required_mgs_ids("c-a") == {"s-a", "s-b"}
        assert cyclic_graph.get_required_mgs_ids("c-b") == {"s-a", "s-b"}

    def test_reverse_order(self, cyclic_graph):
        assert cyclic_graph.get_required_mgs_ids("c-b") == {"s-a", "s-b"}
        assert cyclic_graph.get_required_mgs_ids("c-a") == {"s-a", "s-b"}
