"""
Tests unitaires pour l'expansion des cours attendus.
Couverture : dimanche, start_date, reposições, aulas experimentais,
filtre horaire du jour courant, journées en échec.
"""

import uuid
from datetime import date, datetime

from conftest import TEACHER_ID, TENANT_ID

from app.schemas.lesson import LESSON_TRIAL, SOURCE_REGULAR, SOURCE_RESCHEDULE
from app.services.occurrence_service import date_range, expand_day, expand_occurrences


# 2024-03-13 = mercredi (Quarta), 2024-03-17 = dimanche
WEDNESDAY = date(2024, 3, 13)
SUNDAY = date(2024, 3, 17)


# ============================================================
# date_range
# ============================================================

def test_date_range_bornes_incluses():
    days = list(date_range(date(2024, 2, 27), date(2024, 3, 2)))
    assert days[0] == date(2024, 2, 27)
    assert days[-1] == date(2024, 3, 2)
    assert len(days) == 5  # 2024 bissextile : 29 février compris


def test_date_range_vide_si_fin_avant_debut():
    assert list(date_range(date(2024, 3, 2), date(2024, 3, 1))) == []


# ============================================================
# Bookings récurrents
# ============================================================

def test_booking_du_jour_genere_occurrence(store):
    student = store.add_student(name="Ana Souza", module="B1")
    booking = store.add_booking(student, "Quarta", "10:00")

    occurrences = expand_day(store, TEACHER_ID, WEDNESDAY)

    assert len(occurrences) == 1
    occ = occurrences[0]
    assert occ.source_type == SOURCE_REGULAR
    assert occ.source_id == booking.id
    assert occ.student_id == student.id
    assert occ.student_name == "Ana Souza"
    assert occ.module == "B1"
    assert occ.date == WEDNESDAY
    assert occ.time == "10:00"
    assert occ.lesson_type == SOURCE_REGULAR
    assert occ.key == f"book-{booking.id}-2024-03-13"


def test_booking_autre_jour_ignore(store):
    store.add_booking(store.add_student(), "Quinta", "10:00")
    assert expand_day(store, TEACHER_ID, WEDNESDAY) == []


def test_dimanche_aucune_lecture(store):
    """Domingo : aucun cours, aucune requête."""
    store.add_booking(store.add_student(), "Quarta", "10:00")

    assert expand_day(store, TEACHER_ID, SUNDAY) == []
    assert store.calls == []


def test_booking_pas_encore_commence_ignore(store):
    """start_date > jour → le booking n'est pas rétroactif."""
    store.add_booking(store.add_student(), "Quarta", "10:00", start_date=date(2024, 3, 14))
    assert expand_day(store, TEACHER_ID, WEDNESDAY) == []


def test_booking_commence_le_jour_meme_inclus(store):
    store.add_booking(store.add_student(), "Quarta", "10:00", start_date=WEDNESDAY)
    assert len(expand_day(store, TEACHER_ID, WEDNESDAY)) == 1


def test_booking_sans_start_date_toujours_actif(store):
    store.add_booking(store.add_student(), "Quarta", "10:00", start_date=None)
    assert len(expand_day(store, TEACHER_ID, WEDNESDAY)) == 1


def test_booking_autre_professeur_ignore(store):
    store.add_booking(store.add_student(), "Quarta", "10:00", teacher_id=uuid.uuid4())
    assert expand_day(store, TEACHER_ID, WEDNESDAY) == []


def test_eleve_en_essai_aula_experimental(store):
    student = store.add_student(status="TRIAL")
    store.add_booking(student, "Quarta", "10:00")

    occ = expand_day(store, TEACHER_ID, WEDNESDAY)[0]

    assert occ.source_type == SOURCE_REGULAR
    assert occ.lesson_type == LESSON_TRIAL


def test_statut_aula_experimental_libelle(store):
    student = store.add_student(status="Aula Experimental")
    store.add_booking(student, "Quarta", "10:00")
    assert expand_day(store, TEACHER_ID, WEDNESDAY)[0].lesson_type == LESSON_TRIAL


def test_profil_absent_valeurs_par_defaut(store):
    """Élève introuvable (outer join) → nom générique, module du booking."""
    store.add_booking(None, "Quarta", "10:00")

    occ = expand_day(store, TEACHER_ID, WEDNESDAY)[0]

    assert occ.student_name == "Aluno"
    assert occ.module == "Gen"


def test_heure_legacy_avec_secondes_normalisee(store):
    store.add_booking(store.add_student(), "Quarta", "08:30:00")
    assert expand_day(store, TEACHER_ID, WEDNESDAY)[0].time == "08:30"


def test_filtre_tenant(store):
    store.add_booking(store.add_student(), "Quarta", "10:00")
    assert expand_day(store, TEACHER_ID, WEDNESDAY, tenant_id="autre-ecole") == []
    assert len(expand_day(store, TEACHER_ID, WEDNESDAY, tenant_id=TENANT_ID)) == 1


# ============================================================
# Reposições
# ============================================================

def test_reposicao_datee_generee(store):
    student = store.add_student()
    reschedule = store.add_reschedule(student, WEDNESDAY, "15:00")

    occurrences = expand_day(store, TEACHER_ID, WEDNESDAY)

    assert len(occurrences) == 1
    assert occurrences[0].source_type == SOURCE_RESCHEDULE
    assert occurrences[0].source_id == reschedule.id
    assert occurrences[0].lesson_type == SOURCE_RESCHEDULE
    assert occurrences[0].key == f"repo-{reschedule.id}"


def test_reposicao_ignoree_start_date_des_bookings(store):
    """Une reposição est émise sans condition, même si le booking d'origine n'a pas commencé."""
    student = store.add_student()
    store.add_booking(student, "Quarta", "10:00", start_date=date(2025, 1, 1))
    store.add_reschedule(student, WEDNESDAY, "15:00")

    occurrences = expand_day(store, TEACHER_ID, WEDNESDAY)

    assert [o.source_type for o in occurrences] == [SOURCE_RESCHEDULE]


def test_reposicao_non_planifiee_jamais_emise(store):
    store.add_reschedule(store.add_student(), None)
    assert expand_occurrences(store, TEACHER_ID, date(2024, 3, 11), date(2024, 3, 16)).occurrences == []


# ============================================================
# Jour courant : cours pas encore commencés
# ============================================================

def test_jour_courant_cours_futur_retire(store):
    student = store.add_student()
    store.add_booking(student, "Quarta", "09:00")
    store.add_booking(student, "Quarta", "18:00")

    now = datetime(2024, 3, 13, 12, 0)
    occurrences = expand_day(store, TEACHER_ID, WEDNESDAY, now=now)

    assert [o.time for o in occurrences] == ["09:00"]


def test_jour_courant_cours_a_l_heure_exacte_inclus(store):
    store.add_booking(store.add_student(), "Quarta", "12:00")
    now = datetime(2024, 3, 13, 12, 0)
    assert len(expand_day(store, TEACHER_ID, WEDNESDAY, now=now)) == 1


def test_creneau_minuit_jamais_du_le_jour_meme(store):
    """Le créneau "00:00" désigne la fin de journée (24:00)."""
    store.add_booking(store.add_student(), "Quarta", "00:00")
    now = datetime(2024, 3, 13, 23, 59)
    assert expand_day(store, TEACHER_ID, WEDNESDAY, now=now) == []


def test_jour_passe_pas_de_filtre_horaire(store):
    store.add_booking(store.add_student(), "Quarta", "23:30")
    now = datetime(2024, 3, 14, 7, 0)
    assert len(expand_day(store, TEACHER_ID, WEDNESDAY, now=now)) == 1


# ============================================================
# Plage de dates
# ============================================================

def test_scenario_mercredis_sur_fenetre_en_attente(store):
    """Fenêtre 2024-02-14 → 2024-03-08 : 4 mercredis."""
    store.add_booking(store.add_student(), "Quarta", "10:00")

    result = expand_occurrences(store, TEACHER_ID, date(2024, 2, 14), date(2024, 3, 8))

    assert [o.date for o in result.occurrences] == [
        date(2024, 2, 14), date(2024, 2, 21), date(2024, 2, 28), date(2024, 3, 6),
    ]
    assert result.failures == []


def test_ordre_croissant_des_jours(store):
    student = store.add_student()
    store.add_booking(student, "Segunda", "10:00")
    store.add_booking(student, "Sábado", "10:00")

    result = expand_occurrences(store, TEACHER_ID, date(2024, 3, 11), date(2024, 3, 17))

    assert [o.date for o in result.occurrences] == [date(2024, 3, 11), date(2024, 3, 16)]


def test_echec_lecture_journee_ignoree(store):
    """Une journée en échec est signalée, les autres sont traitées."""
    student = store.add_student()
    store.add_booking(student, "Quarta", "10:00")
    store.add_reschedule(student, date(2024, 3, 14), "11:00")
    store.fail("reschedules", WEDNESDAY)

    result = expand_occurrences(store, TEACHER_ID, date(2024, 3, 13), date(2024, 3, 14))

    assert [o.date for o in result.occurrences] == [date(2024, 3, 14)]
    assert len(result.failures) == 1
    assert result.failures[0].day == WEDNESDAY
    assert result.failures[0].stage == "reschedules"
    assert "connexion perdue" in result.failures[0].message


def test_echec_bookings_nomme_l_etape(store):
    store.fail("bookings", "Quarta")
    result = expand_occurrences(store, TEACHER_ID, WEDNESDAY, WEDNESDAY)
    assert result.failures[0].stage == "bookings"
