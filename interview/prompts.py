from __future__ import annotations  # Prompt builders for the three interview model calls

from textwrap import dedent
from typing import Sequence

from interview.types import CandidateProfile, InterviewResponse, PENDING_ANALYSIS


def build_question_prompt(job_description: str, question_count: int) -> str:  # Question generation task
    return dedent(
        f"""
        You are an expert HR interviewer. Based on the following job description, generate exactly {question_count} relevant interview questions that will help assess a candidate's suitability for this role.

        Job Description:
        {{job_description}}

        Please generate questions that cover:
        1. Technical skills relevant to the role
        2. Behavioral and situational scenarios
        3. Cultural fit and motivation
        4. Problem-solving abilities

        Format your response as a JSON array of exactly {question_count} objects with the following structure:
        [
          {{{{
            "question": "Your question here",
            "type": "technical|behavioral|situational|general",
            "expectedAnswer": "Brief description of what a good answer should include"
          }}}}
        ]

        Make sure questions are:
        - Specific to the role requirements
        - Open-ended to encourage detailed responses
        - Professional and unbiased
        - Varied in difficulty and scope
        Return only the JSON array without markdown fences, text, or commentary.
        """
    ).strip().format(job_description=job_description.strip())


def build_answer_analysis_prompt(question: str, answer: str, job_description: str) -> str:  # Per-answer scoring task
    return dedent(
        """
        You are an expert HR interviewer analyzing a candidate's response to an interview question.

        Job Description:
        {job_description}

        Interview Question:
        {question}

        Candidate's Answer:
        {answer}

        Please analyze this answer and provide:
        1. A score from 1-10 (10 being excellent)
        2. Key strengths demonstrated in the answer
        3. Areas for improvement or concerns
        4. Overall assessment of how well this answer fits the role requirements

        Format your response as a single JSON object:
        {{
          "score": 8,
          "strengths": ["strength1", "strength2"],
          "concerns": ["concern1", "concern2"],
          "analysis": "Detailed analysis of the answer",
          "relevanceToRole": "How well this answer demonstrates fit for the specific role"
        }}
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip().format(
        job_description=job_description.strip(),
        question=question.strip(),
        answer=answer.strip(),
    )


def build_evaluation_prompt(
    job_description: str,
    responses: Sequence[InterviewResponse],
    candidate_profile: CandidateProfile,
) -> str:  # Final evaluation report task
    return dedent(
        """
        You are an expert HR manager creating a comprehensive evaluation report for a job candidate.

        Job Description:
        {job_description}

        Candidate Profile:
        {profile}

        Interview Responses and Analysis:
        {transcript}

        Please provide a comprehensive evaluation report with:
        1. Overall assessment and recommendation
        2. Technical skills evaluation (integer score 0-100)
        3. Communication skills evaluation (integer score 0-100)
        4. Cultural fit assessment (integer score 0-100)
        5. Key strengths (list)
        6. Areas for improvement (list)
        7. Suitability rating (exactly one of: excellent, good, average, below-average, poor)
        8. Specific recommendations for hiring decision
        9. Overall score (integer 0-100)

        Format as a single JSON object:
        {{
          "overallAssessment": "Comprehensive summary of the candidate",
          "technicalSkillsScore": 85,
          "communicationScore": 90,
          "culturalFitScore": 80,
          "strengths": ["strength1", "strength2", "strength3"],
          "weaknesses": ["weakness1", "weakness2"],
          "suitabilityRating": "good",
          "recommendations": "Specific recommendations for hiring decision",
          "overallScore": 85
        }}
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip().format(
        job_description=job_description.strip(),
        profile=_profile_summary(candidate_profile),
        transcript=_transcript(responses),
    )


def _profile_summary(profile: CandidateProfile) -> str:  # Candidate snapshot lines
    experience = profile.experience_years if profile.experience_years is not None else 0
    skills = ", ".join(profile.skills) if profile.skills else "Not specified"
    return "\n".join(
        [
            f"- Name: {profile.full_name}",
            f"- Experience: {experience:g} years",
            f"- Skills: {skills}",
            f"- Location: {profile.location or 'Not specified'}",
        ]
    )


def _transcript(responses: Sequence[InterviewResponse]) -> str:  # Serialize Q&A history
    blocks = []
    for index, response in enumerate(responses, start=1):
        analysis = response.analysis_text
        score = f"{response.score}/10"
        if not analysis or analysis == PENDING_ANALYSIS:
            # Defaulted scores on pending analyses are placeholders, not model output.
            analysis = "Not analyzed"
            score = "Not scored"
        blocks.append(
            f"Question {index}: {response.question_text}\n"
            f"Answer: {response.answer_text}\n"
            f"AI Analysis: {analysis}\n"
            f"Score: {score}\n"
        )
    return "\n---\n".join(blocks) if blocks else "(no responses recorded)"


__all__ = ["build_answer_analysis_prompt", "build_evaluation_prompt", "build_question_prompt"]
