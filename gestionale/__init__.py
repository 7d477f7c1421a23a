"""Back-office core for the security-services gestionale.

Derived alarm-form fields and spreadsheet import of anagrafiche.
"""
