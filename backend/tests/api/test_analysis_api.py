"""
HTTP API tests through FastAPI's TestClient.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from pgxrisk.api.routes import analysis
from pgxrisk.core.config import get_settings
from pgxrisk.main import app
from pgxrisk.services.llm.explanation_client import ExplanationClient
from pgxrisk.services.pharmacogenomics.drug_rules import SUPPORTED_DRUGS


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def cyp2c19_vcf(make_vcf, row):
    return make_vcf(row("rs4244285", "G", "A", "0/1", chrom="chr10", pos=94781859), sample="P-01")


def post_vcf(client, content, filename="sample.vcf", **form):
    return client.post(
        "/api/v1/analyze",
        data=form,
        files={"vcf": (filename, content, "text/plain")},
    )


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "pgxrisk"}

    def test_supported_drugs(self, client):
        body = client.get("/api/v1/drugs").json()
        assert body["drugs"] == SUPPORTED_DRUGS
        assert body["languages"]["hi-IN"] == "Hindi"


class TestAnalyze:

    def test_file_and_drug(self, client, cyp2c19_vcf):
        response = post_vcf(client, cyp2c19_vcf, drugs="Clopidogrel", language="en-US")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["errors"] == []
        result = body["results"][0]
        assert result["patient_id"] == "PATIENT_P_01"
        assert result["pharmacogenomic_profile"]["diplotype"] == "*2/*1"
        assert result["risk_assessment"]["risk_label"] == "Adjust Dosage"
        assert result["quality_metrics"]["llm_failure_flag"] is False

    def test_file_without_drugs_runs_all(self, client, cyp2c19_vcf):
        body = post_vcf(client, cyp2c19_vcf).json()
        assert [r["drug"] for r in body["results"]] == SUPPORTED_DRUGS

    def test_drugs_without_file_use_reference_genotype(self, client):
        response = client.post("/api/v1/analyze", data={"drugs": "Warfarin, Codeine"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert [r["pharmacogenomic_profile"]["diplotype"] for r in body["results"]] == ["*1/*1", "*1/*1"]
        assert body["results"][0]["patient_id"] == "PATIENT_SAMPLE"

    def test_unsupported_drug_is_reported(self, client):
        body = client.post("/api/v1/analyze", data={"drugs": "Aspirin"}).json()
        assert body["success"] is False
        assert body["results"] == []
        assert body["errors"] == [{
            "code": "UNSUPPORTED_DRUG",
            "message": "Drug not supported by current pharmacogenomic engine.",
            "drug": "Aspirin",
        }]

    def test_parser_error_code_passes_through(self, client):
        body = post_vcf(client, "   ", drugs="Warfarin").json()
        assert body["success"] is False
        assert [e["code"] for e in body["errors"]] == ["EMPTY_FILE"]


class TestAnalyzeRejections:

    def test_no_file_no_drugs(self, client):
        response = client.post("/api/v1/analyze", data={})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "NO_DRUGS"

    @pytest.mark.parametrize("drugs", ["rs4244285", "#CHROM", "Warfarin\tCodeine", "Warfarin; DROP"])
    def test_drug_field_validation(self, client, drugs):
        response = client.post("/api/v1/analyze", data={"drugs": drugs})
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert not error["message"].startswith("Value error")

    def test_vcf_content_message(self, client):
        error = client.post("/api/v1/analyze", data={"drugs": "rs123"}).json()["error"]
        assert error["message"] == "This field accepts drug names only. VCF content detected."

    def test_unknown_language(self, client):
        response = client.post("/api/v1/analyze", data={"drugs": "Warfarin", "language": "fr-FR"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_wrong_extension(self, client, cyp2c19_vcf):
        response = post_vcf(client, cyp2c19_vcf, filename="sample.txt", drugs="Warfarin")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["code"] == "INVALID_FILE_TYPE"

    def test_file_too_large(self, client, cyp2c19_vcf, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_BYTES", "16")
        get_settings.cache_clear()

        body = post_vcf(client, cyp2c19_vcf, drugs="Warfarin").json()
        assert body["errors"][0]["code"] == "FILE_TOO_LARGE"
        assert body["results"] == []


class TestAnalyzeWithExplanationService:

    def _patch_client(self, monkeypatch, handler):
        monkeypatch.setattr(
            analysis,
            "ExplanationClient",
            lambda: ExplanationClient(
                base_url="http://explainer.test",
                retry_delay=0,
                transport=httpx.MockTransport(handler),
            ),
        )

    def test_service_text_replaces_template(self, client, monkeypatch):
        self._patch_client(
            monkeypatch,
            lambda request: httpx.Response(
                200, json={"llm_generated_explanation": {"clinician_en": "service text"}}
            ),
        )
        body = client.post("/api/v1/analyze", data={"drugs": "Warfarin"}).json()

        result = body["results"][0]
        assert result["llm_generated_explanation"]["summary"] == "service text"
        assert result["quality_metrics"]["llm_failure_flag"] is False
        assert body["success"] is True

    def test_quota_exceeded_keeps_results(self, client, monkeypatch):
        self._patch_client(monkeypatch, lambda request: httpx.Response(429, text="quota exceeded"))
        body = client.post("/api/v1/analyze", data={"drugs": "Warfarin"}).json()

        assert len(body["results"]) == 1
        assert body["results"][0]["quality_metrics"]["llm_failure_flag"] is True
        assert body["results"][0]["llm_generated_explanation"]["summary"].startswith("NM phenotype")
        assert [e["code"] for e in body["errors"]] == ["LLM_QUOTA_EXCEEDED"]
        assert body["success"] is False


class TestExplanationEndpoint:

    @pytest.fixture
    def payload(self):
        return {
            "drug": "Codeine",
            "gene": "CYP2D6",
            "phenotype": "PM",
            "risk_label": "Contraindicated",
            "severity": "critical",
            "confidence_score": 0.8,
            "cpic_level": "A",
            "preferred_language": "en-US",
        }

    def test_template_explanation(self, client, payload):
        response = client.post("/api/v1/explanation", json=payload)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["input"]["drug"] == "Codeine"
        assert "absent/significantly reduced" in body["explanation"]["mechanism"]

    def test_invalid_confidence(self, client, payload):
        payload["confidence_score"] = 1.5
        response = client.post("/api/v1/explanation", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_missing_field(self, client, payload):
        del payload["gene"]
        response = client.post("/api/v1/explanation", json=payload)
        assert response.status_code == 400
