"""
RaceRoom Racing Experience data toolbox.
"""
