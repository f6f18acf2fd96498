"""Tests for the content selector."""

import pytest

from resume_optimizer.config import SelectorConfig
from resume_optimizer.errors import InvalidRequest
from resume_optimizer.models.job import ParsedRequirements, Requirement
from resume_optimizer.models.selection import ScoredItem
from resume_optimizer.models.vault import ContentItem
from resume_optimizer.pipeline.selector import ContentSelector, select_content_for_job


class FixedScorer:
    """Scorer returning preset scores by item id."""

    def __init__(self, scores: dict[str, float], matches: dict[str, list[str]] | None = None):
        self.scores = scores
        self.matches = matches or {}

    async def score(self, items, requirements):
        return [
            ScoredItem(
                item=item,
                relevance_score=self.scores.get(item.id, 0.0),
                matched_requirements=self.matches.get(item.id, []),
            )
            for item in items
        ]


def _ids(scored_items):
    return [s.item.id for s in scored_items]


class TestContentSelector:
    async def test_select_sample_vault(
        self, mock_llm_client, sample_job, sample_vault, sample_requirements_data, reference_date,
    ):
        mock_llm_client.generate_json.return_value = sample_requirements_data
        result = await select_content_for_job(
            sample_job, sample_vault, llm=mock_llm_client, reference_date=reference_date,
        )

        assert set(_ids(result.selected_items)) == {"job-1", "acc-1", "acc-2", "skill-1", "edu-1"}
        assert _ids(result.selected_items)[0] == "acc-1"
        assert result.coverage_score == 1.0
        assert result.unmatched_requirements == []
        assert _ids(result.grouped_items.jobs) == ["job-1"]
        assert _ids(result.grouped_items.skills) == ["skill-1"]
        assert result.parsed_requirements.domain == "analytics"

    async def test_draft_resume(
        self, mock_llm_client, sample_job, sample_vault, sample_requirements_data, reference_date,
    ):
        mock_llm_client.generate_json.return_value = sample_requirements_data
        result = await select_content_for_job(
            sample_job, sample_vault, llm=mock_llm_client, reference_date=reference_date,
        )
        draft = result.draft_resume
        assert "## Professional Summary" in draft
        assert "5+ years of experience in analytics" in draft
        assert "### Senior Software Engineer | Acme Corp" in draft
        assert "*Austin, TX | 2019 - Present*" in draft
        assert "- Led a team of 5 engineers to deliver a payment platform" in draft
        assert "**Expert:** Python" in draft
        assert "Gardening" not in draft

    async def test_vault_is_not_modified(
        self, mock_llm_client, sample_job, sample_vault, sample_requirements_data, reference_date,
    ):
        mock_llm_client.generate_json.return_value = sample_requirements_data
        before = list(sample_vault)
        await select_content_for_job(sample_job, sample_vault, llm=mock_llm_client, reference_date=reference_date)
        assert sample_vault == before

    async def test_empty_vault(self, mock_llm_client, sample_job, sample_requirements_data):
        mock_llm_client.generate_json.return_value = sample_requirements_data
        result = await select_content_for_job(sample_job, [], llm=mock_llm_client)

        assert result.selected_items == []
        assert result.coverage_score == 0.0
        assert result.unmatched_requirements == result.parsed_requirements.requirements
        assert result.draft_resume == ""
        assert any("empty" in w for w in result.warnings)

    async def test_accomplishment_cap_per_parent(self, mock_llm_client):
        items = [ContentItem(id="job", type="job_entry", content="Engineer")] + [
            ContentItem(id=f"a{i}", type="accomplishment", content=f"Thing {i}", parent_id="job")
            for i in range(6)
        ] + [
            ContentItem(id=f"o{i}", type="accomplishment", content=f"Side project {i}")
            for i in range(3)
        ]
        scores = {item.id: 0.9 - i * 0.01 for i, item in enumerate(items)}
        selector = ContentSelector(
            mock_llm_client, {"max_accomplishments_per_job": 2}, scorer=FixedScorer(scores),
        )
        result = await selector.select_with_requirements(ParsedRequirements(), items)

        assert _ids(result.grouped_items.accomplishments) == ["a0", "a1", "o0", "o1"]

    async def test_caps_and_threshold(self, mock_llm_client):
        items = [
            ContentItem(id=f"s{i}", type="skill", content=f"Skill {i}") for i in range(5)
        ]
        scores = {"s0": 0.2, "s1": 0.9, "s2": 0.5, "s3": 0.7, "s4": 0.29}
        selector = ContentSelector(
            mock_llm_client,
            SelectorConfig(max_skills=2, min_relevance_score=0.3),
            scorer=FixedScorer(scores),
        )
        result = await selector.select_with_requirements(ParsedRequirements(), items)
        assert _ids(result.grouped_items.skills) == ["s1", "s3"]

    async def test_ties_keep_vault_order(self, mock_llm_client):
        items = [ContentItem(id=i, type="skill", content=i) for i in ("b", "a", "c")]
        selector = ContentSelector(mock_llm_client, scorer=FixedScorer({"a": 0.5, "b": 0.5, "c": 0.5}))
        result = await selector.select_with_requirements(ParsedRequirements(), items)
        assert _ids(result.selected_items) == ["b", "a", "c"]

    async def test_fragments_are_never_selected(self, mock_llm_client):
        items = [
            ContentItem(id="job", type="job_entry", content="Platform work",
                        metadata={"company": "Initech"}),
            ContentItem(id="job-title", type="job_title", content="Staff Engineer", parent_id="job"),
        ]
        selector = ContentSelector(mock_llm_client, scorer=FixedScorer({"job": 0.8, "job-title": 0.9}))
        result = await selector.select_with_requirements(ParsedRequirements(), items)

        assert _ids(result.selected_items) == ["job"]
        assert "### Staff Engineer | Initech" in result.draft_resume

    async def test_coverage_and_warnings(self, mock_llm_client):
        parsed = ParsedRequirements(
            requirements=[
                Requirement(text="Python", importance="must-have"),
                Requirement(text="PhD", type="education", importance="must-have"),
                Requirement(text="Go", importance="nice-to-have"),
            ]
        )
        items = [ContentItem(id="py", type="skill", content="Python")]
        selector = ContentSelector(
            mock_llm_client, scorer=FixedScorer({"py": 0.9}, {"py": ["Python"]}),
        )
        result = await selector.select_with_requirements(parsed, items)

        assert result.coverage_score == pytest.approx(1 / 3)
        assert [r.text for r in result.unmatched_requirements] == ["PhD", "Go"]
        assert result.unmatched_requirements[0] == parsed.requirements[1]
        assert result.unmatched_requirements[0].importance == "must-have"
        assert any("must-have education" in w for w in result.warnings)
        assert any("Low requirement coverage" in w for w in result.warnings)

    async def test_nothing_passes_threshold(self, mock_llm_client):
        items = [ContentItem(id="s", type="skill", content="Knitting")]
        selector = ContentSelector(mock_llm_client, scorer=FixedScorer({"s": 0.1}))
        result = await selector.select_with_requirements(ParsedRequirements(), items)
        assert result.selected_items == []
        assert result.draft_resume == ""
        assert any("min_relevance_score" in w for w in result.warnings)

    def test_invalid_config_mapping(self, mock_llm_client):
        with pytest.raises(InvalidRequest, match="selector config"):
            ContentSelector(mock_llm_client, {"max_jobs": -1})
        with pytest.raises(InvalidRequest):
            ContentSelector(mock_llm_client, {"max_widgets": 3})

    async def test_accomplishments_follow_their_job(self, mock_llm_client):
        parsed = ParsedRequirements(requirements=[Requirement(text="Kafka", importance="must-have")])
        items = [
            ContentItem(id="j1", type="job_entry", content="Backend Engineer - Initech"),
            ContentItem(id="j2", type="job_entry", content="SRE - Globex"),
            ContentItem(id="a1", type="accomplishment", content="Shipped billing API", parent_id="j1"),
            ContentItem(id="a2", type="accomplishment", content="Ran Kafka clusters", parent_id="j2"),
            ContentItem(id="o1", type="accomplishment", content="Wrote a CLI", parent_id="deleted-job"),
        ]
        scorer = FixedScorer(
            {"j1": 0.9, "j2": 0.8, "a1": 0.7, "a2": 0.95, "o1": 0.6}, {"a2": ["Kafka"]},
        )
        selector = ContentSelector(mock_llm_client, {"max_jobs": 1}, scorer=scorer)
        result = await selector.select_with_requirements(parsed, items)

        assert _ids(result.grouped_items.jobs) == ["j1"]
        assert _ids(result.grouped_items.accomplishments) == ["a1", "o1"]
        assert result.coverage_score == 0.0
        assert [r.text for r in result.unmatched_requirements] == ["Kafka"]
        assert "Kafka" not in result.draft_resume
        assert "## Additional Accomplishments\n\n- Wrote a CLI" in result.draft_resume

    async def test_untagged_vault_matches_on_text(
        self, mock_llm_client, sample_job, untagged_vault, sample_requirements_data, reference_date,
    ):
        mock_llm_client.generate_json.return_value = sample_requirements_data
        result = await select_content_for_job(
            sample_job, untagged_vault, llm=mock_llm_client, reference_date=reference_date,
        )

        by_id = {s.item.id: s for s in result.selected_items}
        assert "Team leadership" in by_id["acc-1"].matched_requirements
        assert "Python programming" in by_id["acc-2"].matched_requirements
        assert set(by_id) == {"job-1", "acc-1", "acc-2", "skill-1", "edu-1"}
        assert result.coverage_score == 1.0
