"""
Sequence containers: single sequences, named records and ordered (aligned) collections of records.
"""
