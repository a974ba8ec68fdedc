"""
Tests unitaires pour l'enregistrement en lot des class_logs.
Couverture : idempotence (intra-lot et en base), sous-types forcés,
consommation des reposições, politique d'absence, échec d'écriture.
"""

import uuid
from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from app.models.class_log import ClassLog
from app.schemas.class_log import AbsencePolicyResult, ClassLogBatch, ClassLogEntry
from app.services.class_log_service import record_class_logs
from app.services.errors import WriteFailedError


TEACHER_ID = uuid.uuid4()
NOW = datetime(2024, 3, 15, 18, 0)


# --- Helpers ---

def make_entry(source_type="REGULAR", source_id=None, student_id=None, class_date=date(2024, 3, 13), **kwargs) -> ClassLogEntry:
    return ClassLogEntry(
        source_type=source_type,
        source_id=source_id or uuid.uuid4(),
        student_id=student_id or uuid.uuid4(),
        class_date=class_date,
        **kwargs,
    )


def make_batch(*entries) -> ClassLogBatch:
    return ClassLogBatch(tenant_id="escola-centro", entries=list(entries))


def make_db(existing_log_id=None):
    """Mock de session DB. existing_log_id = valeur retournée par .scalar() (contrôle d'idempotence)."""
    db = MagicMock()
    db.execute.return_value.scalar.return_value = existing_log_id
    return db


def inserted_logs(db) -> list:
    logs = []
    for c in db.add_all.call_args_list:
        logs.extend(log for log in c.args[0] if isinstance(log, ClassLog))
    return logs


# ============================================================
# Validation du lot
# ============================================================

def test_lot_vide_rejete():
    with pytest.raises(ValidationError):
        ClassLogBatch(tenant_id="escola-centro", entries=[])


def test_presence_invalide_rejetee():
    with pytest.raises(ValidationError):
        make_entry(presence="Atrasado")


def test_source_invalide_rejetee():
    with pytest.raises(ValidationError):
        make_entry(source_type="EXTRA")


def test_cours_un_dimanche_rejete():
    with pytest.raises(ValidationError):
        make_entry(class_date=date(2024, 3, 17))


def test_lot_trop_grand_rejete():
    with pytest.raises(ValidationError):
        make_batch(*[make_entry() for _ in range(201)])


def test_cle_entree_identique_a_l_occurrence():
    source_id = uuid.uuid4()
    assert make_entry(source_id=source_id).key == f"book-{source_id}-2024-03-13"
    assert make_entry(source_type="REPOSIÇÃO", source_id=source_id).key == f"repo-{source_id}"


# ============================================================
# Insertion
# ============================================================

def test_cours_regulier_insere():
    db = make_db()
    entry = make_entry(content_covered="Unit 3", homework_assigned="p. 42")

    result = record_class_logs(db, TEACHER_ID, make_batch(entry), now=NOW)

    assert result.total_received == 1
    assert result.total_inserted == 1
    assert result.duplicate == []
    log = inserted_logs(db)[0]
    assert log.booking_id == entry.source_id
    assert log.reschedule_id is None
    assert log.teacher_id == TEACHER_ID
    assert log.class_date == date(2024, 3, 13)
    assert log.presence == "Presença"
    assert log.subtype is None
    assert log.content_covered == "Unit 3"
    assert result.inserted == [log.id]
    db.commit.assert_called_once()


def test_reposicao_consommee_et_sous_type_force():
    db = make_db()
    entry = make_entry(source_type="REPOSIÇÃO", subtype="Doença")

    result = record_class_logs(db, TEACHER_ID, make_batch(entry), now=NOW)

    log = inserted_logs(db)[0]
    assert log.reschedule_id == entry.source_id
    assert log.booking_id is None
    assert log.subtype == "REPOSIÇÃO"
    assert result.consumed_reschedules == [entry.source_id]
    statements = [str(c.args[0]) for c in db.execute.call_args_list]
    assert any(s.startswith("DELETE FROM reschedules") for s in statements)


def test_aula_experimental_sous_type_force():
    db = make_db()
    record_class_logs(db, TEACHER_ID, make_batch(make_entry(is_trial=True, subtype="Outros")), now=NOW)
    assert inserted_logs(db)[0].subtype == "AULA EXPERIMENTAL"


def test_motif_absence_conserve():
    db = make_db()
    entry = make_entry(presence="Falta Justificada", subtype="Doença")
    with patch("app.services.class_log_service.apply_absence_policy", return_value=AbsencePolicyResult()):
        record_class_logs(db, TEACHER_ID, make_batch(entry), now=NOW)
    assert inserted_logs(db)[0].subtype == "Doença"


def test_pas_de_delete_sans_reposicao():
    db = make_db()
    record_class_logs(db, TEACHER_ID, make_batch(make_entry()), now=NOW)
    statements = [str(c.args[0]) for c in db.execute.call_args_list]
    assert not any(s.startswith("DELETE") for s in statements)


# ============================================================
# Idempotence
# ============================================================

def test_doublon_intra_lot():
    db = make_db()
    source_id = uuid.uuid4()
    first = make_entry(source_id=source_id)
    second = make_entry(source_id=source_id, student_id=first.student_id)

    result = record_class_logs(db, TEACHER_ID, make_batch(first, second), now=NOW)

    assert result.total_inserted == 1
    assert result.duplicate == [second.key]


def test_meme_booking_deux_dates_pas_doublon():
    db = make_db()
    source_id = uuid.uuid4()
    batch = make_batch(
        make_entry(source_id=source_id, class_date=date(2024, 3, 6)),
        make_entry(source_id=source_id, class_date=date(2024, 3, 13)),
    )

    result = record_class_logs(db, TEACHER_ID, batch, now=NOW)

    assert result.total_inserted == 2


def test_deja_enregistre_en_base():
    db = make_db(existing_log_id=uuid.uuid4())
    entry = make_entry()

    result = record_class_logs(db, TEACHER_ID, make_batch(entry), now=NOW)

    assert result.total_inserted == 0
    assert result.duplicate == [entry.key]
    db.add_all.assert_not_called()
    db.commit.assert_not_called()


# ============================================================
# Politique d'absence
# ============================================================

def test_absence_cree_une_reposicao():
    db = make_db()
    result = record_class_logs(db, TEACHER_ID, make_batch(make_entry(presence="Falta")), now=NOW)

    assert len(result.absence_policy.created) == 1
    # commit des logs puis commit des reposições
    assert db.commit.call_count == 2


def test_absence_sur_reposicao_aucune_nouvelle_reposicao():
    db = make_db()
    entry = make_entry(source_type="REPOSIÇÃO", presence="Falta")

    result = record_class_logs(db, TEACHER_ID, make_batch(entry), now=NOW)

    assert result.absence_policy.created == []
    db.begin_nested.assert_not_called()


def test_absence_sur_reposicao_eleve_en_essai_aucune_nouvelle_reposicao():
    db = make_db()
    entry = make_entry(source_type="REPOSIÇÃO", presence="Falta", is_trial=True)

    result = record_class_logs(db, TEACHER_ID, make_batch(entry), now=NOW)

    assert inserted_logs(db)[0].subtype == "AULA EXPERIMENTAL"
    assert result.absence_policy.created == []
    db.begin_nested.assert_not_called()


def test_politique_appliquee_apres_insertion():
    db = make_db()
    calls = []
    db.commit.side_effect = lambda: calls.append("commit")

    def fake_policy(session, logs, now):
        calls.append("policy")
        return AbsencePolicyResult()

    with patch("app.services.class_log_service.apply_absence_policy", side_effect=fake_policy):
        record_class_logs(db, TEACHER_ID, make_batch(make_entry(presence="Falta")), now=NOW)

    assert calls == ["commit", "policy"]


# ============================================================
# Échec d'écriture
# ============================================================

def test_echec_consommation_annule_tout():
    """Le DELETE des reposições échoue : rollback et étape nommée."""
    db = make_db()

    def execute(statement, *args, **kwargs):
        if str(statement).startswith("DELETE"):
            raise OperationalError("DELETE", {}, Exception("timeout"))
        return MagicMock(scalar=MagicMock(return_value=None))

    db.execute.side_effect = execute

    with pytest.raises(WriteFailedError) as exc:
        record_class_logs(db, TEACHER_ID, make_batch(make_entry(source_type="REPOSIÇÃO")), now=NOW)

    assert exc.value.step == "consommation des reposições"
    assert "timeout" in exc.value.message
    db.rollback.assert_called_once()
    db.commit.assert_not_called()
