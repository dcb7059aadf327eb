from tipping import create_app, db
from tipping.models import (
    Evaluator,
    League,
    LeagueMember,
    Match,
    Question,
    Series,
    SpecialBet,
    User,
)

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "League": League,
        "LeagueMember": LeagueMember,
        "Evaluator": Evaluator,
        "Match": Match,
        "Series": Series,
        "SpecialBet": SpecialBet,
        "Question": Question,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
