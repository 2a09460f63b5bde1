"""
Plain Python demo of the buffered Langfuse client.

This example demonstrates:
1. Creating a trace with nested spans and a generation
2. Scoring the trace
3. Concurrent producers sharing one client
4. Draining the buffers on shutdown

Set LANGFUSE_PUBLIC_KEY / LANGFUSE_SECRET_KEY (and LANGFUSE_HOST for a
self-hosted instance) before running, or put them in langfuse.yaml.
"""

import logging
import threading

from langfuse_sdk import Langfuse, NoCapacityError


logging.basicConfig(level=logging.INFO)


# Example 1: A trace with nested observations
def answer_question(langfuse, question):
    trace = langfuse.trace(name="qa", input={"question": question})

    retrieval = trace.span(name="retrieve", input={"query": question})
    documents = ["doc-1", "doc-2"]
    retrieval.output = {"documents": documents}
    retrieval.end()

    generation = trace.generation(
        name="answer",
        model="gpt-4o-mini",
        input=[{"role": "user", "content": question}],
        model_parameters={"temperature": 0.1},
    )
    answer = f"Based on {len(documents)} documents: 42"
    generation.output = answer
    generation.usage = {"input": 12, "output": 8}
    generation.end()

    # Example 2: Scores
    trace.score(name="helpfulness", value=0.9, comment="demo")
    return answer


# Example 3: Many threads, one client
def producer(langfuse, worker):
    for n in range(20):
        try:
            langfuse.event(name="tick", metadata={"worker": worker, "n": n})
        except NoCapacityError:
            print(f"  [worker {worker}] buffers full, dropping tick {n}")


def main():
    langfuse = Langfuse(flush_interval_ms=200)

    print("Answer:", answer_question(langfuse, "What is the meaning of life?"))

    threads = [threading.Thread(target=producer, args=(langfuse, w)) for w in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    print("Pending per queue:", langfuse.event_manager.occupancy())

    # Example 4: Drain before exit
    langfuse.shutdown()
    print("Pending after shutdown:", langfuse.event_manager.pending_count)


if __name__ == "__main__":
    main()
