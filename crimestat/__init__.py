"""CrimeStat — street-level crime explorer for data.police.uk"""
