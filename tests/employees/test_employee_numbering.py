from hrims.employees.numbering import employee_number_prefix, next_employee_number


def test_first_number_in_department_and_year():
    assert next_employee_number([], department_code="fin", year=2026) == "EMP/FIN/2026/001"


def test_continues_after_highest_matching_number():
    existing = ["EMP/FIN/2026/003", "EMP/FIN/2026/001", "EMP/HR/2026/009", "EMP/FIN/2025/010", "EMP/FIN/2026/x"]

    assert next_employee_number(existing, department_code="FIN", year=2026) == "EMP/FIN/2026/004"


def test_prefix_without_department():
    assert employee_number_prefix(None, 2026) == "EMP/2026/"
    assert next_employee_number(["EMP/2026/041"], department_code="", year=2026) == "EMP/2026/042"
