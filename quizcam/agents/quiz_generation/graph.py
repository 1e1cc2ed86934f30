# quizcam/agents/quiz_generation/graph.py

from langgraph.graph import StateGraph, END

# Internal imports
from .state import QuizGenerationState
from .nodes import ASSEMBLE_ROUTE, TRANSLATE_ROUTE, QuizGenerationNodes


# Define the graph
def create_quiz_generation_graph(nodes: QuizGenerationNodes) -> StateGraph:
    """validate -> detect_language -> generate_questions -> [translate_questions] -> assemble_payload"""
    workflow = StateGraph(QuizGenerationState)

    # Define nodes
    workflow.add_node("validate_request", nodes.validate_request_node)
    workflow.add_node("detect_language", nodes.detect_language_node)
    workflow.add_node("generate_questions", nodes.generate_questions_node)
    workflow.add_node("translate_questions", nodes.translate_questions_node)
    workflow.add_node("assemble_payload", nodes.assemble_payload_node)

    # Define edges; detection always precedes generation
    workflow.set_entry_point("validate_request")
    workflow.add_edge("validate_request", "detect_language")
    workflow.add_edge("detect_language", "generate_questions")
    workflow.add_conditional_edges(
        "generate_questions",
        nodes.route_after_generation,
        {
            TRANSLATE_ROUTE: "translate_questions",
            ASSEMBLE_ROUTE: "assemble_payload",
        },
    )
    workflow.add_edge("translate_questions", "assemble_payload")
    workflow.add_edge("assemble_payload", END)

    return workflow
