"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "QuizDelivery"
LOADING_MESSAGE: str = "Loading quiz…"
UNAVAILABLE_MESSAGE: str = "This quiz is not open right now."
LOAD_FAILED_MESSAGE: str = "The quiz could not be loaded."
ALREADY_SUBMITTED_MESSAGE: str = "You have already submitted this quiz. You cannot submit again."
SUBMITTED_MESSAGE: str = "Your answers have been submitted."
SUBMITTING_MESSAGE: str = "Submitting…"

START_BUTTON: str = "Start Quiz"
RESUME_BUTTON: str = "Back to Quiz"
BACK_BUTTON: str = "Back"
NEXT_BUTTON: str = "Next"
SUBMIT_BUTTON: str = "Submit"
RETRY_BUTTON: str = "Retry Submission"
VIEW_SCORE_BUTTON: str = "View Score"

TRUE_LABEL: str = "True"
FALSE_LABEL: str = "False"
IDENTIFICATION_PLACEHOLDER: str = "Type your answer"

TIMER_TEMPLATE: str = "Time left: {minutes}:{seconds:02d}"
TIME_WARNING_TEMPLATE: str = "Only {minutes}:{seconds:02d} left. Your answers will be submitted automatically."
VIOLATION_TEMPLATE: str = "You left the quiz window. This has been recorded ({count} so far)."
UNANSWERED_TEMPLATE: str = "Please answer the required question(s): {positions}"
SUBMIT_FAILED_TITLE: str = "Submission Failed"
SCORE_TITLE: str = "Your Score"
SCORE_TEMPLATE: str = "You scored {score} out of {total}."
