"""
Portfolio content API: subjects, abilities, technologies, projects.
"""
