"""Series evaluators"""


def evaluate_series_exact(context):
    if not (context.prediction.is_complete and context.actual.is_complete):
        return False
    return (
        context.prediction.home == context.actual.home
        and context.prediction.away == context.actual.away
    )


def evaluate_series_winner(context):
    """Right series winner with the wrong game count"""
    if not (context.prediction.is_complete and context.actual.is_complete):
        return False
    if evaluate_series_exact(context):
        return False
    return context.prediction.outcome == context.actual.outcome
