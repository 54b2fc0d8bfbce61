class ConfigurationError(ValueError):
    """
    Raised while loading or validating a rule catalog.

    Structural problems (bad regex, missing capture groups, unknown process
    tag, ambiguous rules) are reported here at load time so that per-PR
    evaluation never has to deal with them.
    """
