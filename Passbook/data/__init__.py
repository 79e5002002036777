"""
Data package: table models and analytics of the server's lists.

- :mod:`Passbook.data.model` – Qt table models for expenses, months and children.
- :mod:`Passbook.data.analytics` – pandas summaries of spending and savings.
"""
