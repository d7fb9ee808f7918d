import config
import structlog

from diagnosis.similarity import rank_diseases
from diagnosis.vitals_rules import evaluate_vitals
from embedding.embedding_store import DiseaseEmbeddingStore
from structure.schema import DiagnosisReport, DiagnosisResult, VitalsInput

logger = structlog.get_logger()


class DiagnosisPipeline:
    """
    Symptom-to-diagnosis matcher:
    - Lazily loads the embedding model and embeds the Knowledge Base once
    - Ranks diseases by cosine similarity to the described symptoms
    - Runs the vital-sign red-flag rules on the same encounter
    """

    def __init__(self, store=None, top_k=config.TOP_K_DIAGNOSES):
        self.store = store or DiseaseEmbeddingStore()
        self.top_k = top_k

    async def ensure_ready(self):
        await self.store.ensure_ready()

    async def perform_diagnosis(self, symptoms, vitals=None):
        """
        Rank the Knowledge Base against free-text symptoms and check vitals.

        Args:
            symptoms: symptom description (may be empty)
            vitals: VitalsInput, a mapping of readings, or None

        Returns:
            DiagnosisReport with up to top_k diagnoses and any red-flag alerts
        """
        if not isinstance(vitals, VitalsInput):
            vitals = VitalsInput.from_dict(vitals)

        await self.store.ensure_ready()

        query_vector = await self.store.embed(symptoms or "")
        ranked = rank_diseases(query_vector, self.store.items(), top_k=self.top_k)
        diagnoses = [
            DiagnosisResult.from_record(record, confidence)
            for record, _, confidence in ranked
        ]

        red_flags = evaluate_vitals(vitals)

        logger.info(
            "diagnosis_complete",
            symptom_chars=len(symptoms or ""),
            top=diagnoses[0].id if diagnoses else None,
            confidence=diagnoses[0].confidence if diagnoses else None,
            candidates=len(diagnoses),
            red_flags=len(red_flags),
        )
        return DiagnosisReport(diagnoses=diagnoses, red_flags=red_flags)
