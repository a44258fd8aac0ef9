import pytest

from sahayak.errors import (
    EmptyChatHistory,
    HttpError,
    InsufficientCredits,
    InvalidApiKey,
    InvalidChatMessageRequest,
    InvalidContentResponse,
    InvalidModel,
    InvalidToolCallArguments,
    MaxIterationsExceeded,
    MissingApiKey,
    NoChoicesFound,
    NoCompletionFound,
    NoContentFound,
    OtherError,
    RateLimitExceeded,
    RetryKind,
    RetryStrategy,
    ServiceUnavailable,
    classify,
)


@pytest.mark.parametrize("err", [InvalidModel(), EmptyChatHistory(), InvalidApiKey(), MissingApiKey(), InsufficientCredits()])
def test_account_and_configuration_errors_are_fatal(err):
    assert classify(err) == RetryStrategy.fatal()


@pytest.mark.parametrize("err", [RateLimitExceeded(), ServiceUnavailable(), HttpError("connection reset")])
def test_transport_errors_are_retryable(err):
    assert classify(err).kind == RetryKind.retryable


@pytest.mark.parametrize(
    "err",
    [
        InvalidChatMessageRequest(),
        NoCompletionFound(),
        NoChoicesFound(),
        NoContentFound(),
        InvalidToolCallArguments("bad json"),
        InvalidContentResponse(),
        OtherError("weird"),
        RuntimeError("not a client error at all"),
    ],
)
def test_content_and_unknown_errors_go_back_to_the_model(err):
    strategy = classify(err)
    assert strategy.kind == RetryKind.add_to_memory_and_retry
    assert strategy.text == f"An error occurred: {err}. Please try again with a different approach."


def test_error_messages():
    assert str(InvalidApiKey()) == "Invalid API key"
    assert str(EmptyChatHistory()) == "Chat history cannot be empty"
    assert str(InsufficientCredits()) == "Not enough credits"
    assert str(HttpError("timed out")) == "HTTP request failed: timed out"
    assert str(OtherError("Unexpected HTTP status: 418")) == "Other error: Unexpected HTTP status: 418"
    assert str(InvalidToolCallArguments("x")) == "Invalid tool call arguments: x"


def test_max_iterations_message():
    err = MaxIterationsExceeded(50)
    assert err.cap == 50
    assert str(err) == "Maximum iterations (50) exceeded"
