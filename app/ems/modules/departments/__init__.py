"""
Departments module.

A department also decides which professions can be assigned to its employees
(see DepartmentProfession).
"""
