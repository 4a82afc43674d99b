"""
Employees module: public listing with filters and the admin two-step
create/edit workflow (department first, then one of its professions).
"""
