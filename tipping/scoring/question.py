"""Yes/no question evaluator"""


def evaluate_question(context, points):
    """
    Score a yes/no answer.

    Returns:
        tuple: (points, is_correct). Correct earns the full points, wrong loses
        half of them rounded down, unanswered scores 0 with is_correct None.
    """
    if context.prediction is None:
        return 0, None

    if context.prediction == context.result:
        return points, True

    return -(points // 2), False
