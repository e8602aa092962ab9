PAGE_ANALYSIS_PROMPT = """You will be acting as a teacher who is grading student essays.
Thoroughly analyze the attached text pages from the student essay's PDF.
Based on this information, I want you to give me these things for each page:
Claim/ Focus: How strong is the claim and how well does the page maintain it's focus of the topic?
Support/ Evidence: How strong is the evidence used to support all the claims and assertions in that page?
Organization: How well is the paper structured and how easy is it navigate and read as a human?
Images/ Tables/ Graphics: If the page has any images, charts, or tables, how effective is it in supporting the claim and how good does it function as evidence?
While returning your response, only use plain text. Don't use any form of markdown or styling."""

ANALYSES_HEADER = "Here are the individual analyses of groups of pages: "

EVALUATION_PROMPT = """. Based on these analyses, provide an overall summary or score for the entire document following this guideline:
Glow: Three bullet points at the project does good at
Grow: Three bullet points at what the project can do better at
Action Items: Three suggestions to make the original authors reflect how they could've made the project paper better.
Then I want you to give these information:
Claim/ Focus (out of 5 points): How strong is the claim and how well does the pdf maintain it's focus of the topic? Give a short summary why it deserved that point.
Support/ Evidence (out of 5 points): How strong is the evidence used to support all the claims and assertions? Give a short summary why it deserved that point.
Organization (out of 5 points): How well is the paper structured and how easy is it navigate and read as a human? Give a short summary why it deserved that point.
Image/ Text/ Charts (out of 5 points): How well does the paper incorporate images, charts and tables to support the overall claim and how effective does it work as evidence overall? Give a short summary why it deserved that point.
The attached text from the PDF might also have charts and images. I also want a three sentence summary of the academic paper so I can evaluate the images.

Give it to me in the following JSON:
{
  "glow": [],
  "grow": [],
  "action_items": [],
  "claim": { "points": "number", "commentary": "text" },
  "support": { "points": "number", "commentary": "text" },
  "organization": { "points": "number", "commentary": "text" },
  "graphics": { "points": "number", "commentary": "text" },
  "summary": "text"
}
I just want the raw JSON and nothing else from you. I don't want three tick marks in the beginning or at the end. I just want the JSON surrounded by curly braces."""


def build_evaluation_prompt(analyses: list[str]) -> str:
    """
    Joins the per-group analyses into the final evaluation request
    Returns: The full text of the aggregation message
    """
    joined = "\n".join(analyses)
    return f"{ANALYSES_HEADER}{joined}{EVALUATION_PROMPT}"
