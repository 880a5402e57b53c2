"""
grade: day assembly for syndicated radio programming.
"""
