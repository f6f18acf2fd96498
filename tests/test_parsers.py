"""Tests for job posting and vault loaders."""

import json

import pytest

from resume_optimizer.errors import InvalidRequest
from resume_optimizer.models.vault import ContentType
from resume_optimizer.parsers.job_parser import clean_text, load_job_file, parse_job_text
from resume_optimizer.parsers.vault_loader import FileVaultStore, VaultFilter, parse_vault

JOB_TEXT = """Senior Data Engineer

We are building   the analytics platform for   retail.


Requirements:
- 5+ years of Python
- Airflow or Dagster

Preferred qualifications:
1. Kubernetes
2) Terraform
"""


class TestJobParser:
    def test_clean_text(self):
        result = clean_text("  Hello   World  \n\n\n\nLine 2  ")
        assert "   " not in result
        assert "\n\n\n" not in result
        assert result == "Hello World\n\nLine 2"

    def test_parse_job_text(self):
        job = parse_job_text(JOB_TEXT, job_id="de-1")
        assert job.id == "de-1"
        assert job.title == "Senior Data Engineer"
        assert job.description == "We are building the analytics platform for retail."
        assert job.requirements == ["5+ years of Python", "Airflow or Dagster"]
        assert job.qualifications == ["Kubernetes", "Terraform"]

    def test_load_text_file(self, tmp_path):
        path = tmp_path / "posting.txt"
        path.write_text(JOB_TEXT, encoding="utf-8")
        job = load_job_file(path)
        assert job.id == "posting"
        assert job.title == "Senior Data Engineer"

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "job.yaml"
        path.write_text(
            "title: Platform Engineer\ncompany: Initech\nrequirements: |\n  Go\n  Kubernetes\n",
            encoding="utf-8",
        )
        job = load_job_file(path)
        assert job.id == "job"
        assert job.company == "Initech"
        assert job.requirements == ["Go", "Kubernetes"]

    def test_load_json_file(self, tmp_path):
        path = tmp_path / "job.json"
        path.write_text(json.dumps({"id": "x1", "title": "Analyst", "qualifications": ["SQL"]}))
        job = load_job_file(path)
        assert job.id == "x1"
        assert job.qualifications == ["SQL"]

    def test_structured_file_must_be_mapping(self, tmp_path):
        path = tmp_path / "job.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(InvalidRequest, match="mapping"):
            load_job_file(path)


VAULT_YAML = """items:
  - id: job-1
    type: job_entry
    content: Data Engineer - Globex
    tags: [python, data]
    metadata:
      company: Globex
      date_range: {start: "2020-01"}
    accomplishments:
      - Migrated batch jobs to Airflow
      - id: job-1-cost
        content: Cut warehouse costs 30%
        tags: [cost]
  - id: skill-sql
    type: skill
    content: SQL
    tags: [data]
"""


class TestVaultLoader:
    def test_parse_vault_flattens_accomplishments(self, tmp_path):
        path = tmp_path / "vault.yaml"
        path.write_text(VAULT_YAML, encoding="utf-8")
        items = FileVaultStore(path).list_content_items()

        assert [item.id for item in items] == ["job-1", "job-1-1", "job-1-cost", "skill-sql"]
        assert items[1].type is ContentType.ACCOMPLISHMENT
        assert items[1].parent_id == "job-1"
        assert items[2].tags == frozenset({"cost"})
        assert items[0].metadata.date_range.is_current

    def test_filter(self, tmp_path):
        path = tmp_path / "vault.yaml"
        path.write_text(VAULT_YAML, encoding="utf-8")
        store = FileVaultStore(path)

        skills = store.list_content_items(VaultFilter(types=frozenset({ContentType.SKILL})))
        assert [item.id for item in skills] == ["skill-sql"]
        tagged = store.list_content_items(VaultFilter(tags=frozenset({"data"})))
        assert [item.id for item in tagged] == ["job-1", "skill-sql"]

    def test_json_list(self, tmp_path):
        path = tmp_path / "vault.json"
        path.write_text(json.dumps([{"id": "e1", "type": "education", "content": "B.A. Economics"}]))
        items = FileVaultStore(path).list_content_items()
        assert items[0].type is ContentType.EDUCATION

    def test_duplicate_ids(self):
        with pytest.raises(InvalidRequest, match="unique"):
            parse_vault([
                {"id": "a", "type": "skill", "content": "SQL"},
                {"id": "a", "type": "skill", "content": "Go"},
            ])

    def test_invalid_item(self):
        with pytest.raises(InvalidRequest, match="'bad'"):
            parse_vault([{"id": "bad", "type": "hobby", "content": "Chess"}])

    def test_empty(self):
        assert parse_vault(None) == []
        assert parse_vault({"items": []}) == []

    def test_not_a_list(self):
        with pytest.raises(InvalidRequest):
            parse_vault("items")
