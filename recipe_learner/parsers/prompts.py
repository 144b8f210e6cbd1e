"""
Prompt for recipe extraction from document text using LangExtract.
"""

EXTRACTION_PROMPT = """
Extract the complete recipe from text that was converted from a PDF or e-book
page. The text may be German or English and may contain page furniture
(headers, footers, page numbers, nutrition tables) and broken line wrapping.

Identify and extract:
1. title: the recipe title
2. servings: the number of servings/portions, ONLY the number
   (e.g. extract "4" from "Für 4 Personen" or "Serves 4")
3. prep_time: the preparation or active time in minutes, ONLY the number
   (convert hours to minutes, e.g. "1 Std." -> "60")
4. cook_time: the cooking or baking time in minutes, ONLY the number
5. ingredient: EVERY ingredient of the ingredient list
6. step: EVERY instruction step, in order

For each ingredient, provide the attributes:
- name: the ingredient name as written, without amount and unit
- quantity: the numeric amount (e.g. "250", "0.5", "2.5"), or null if not specified
- unit: ONLY the measurement unit (e.g. "g", "ml", "EL", "TL", "Prise", "cups"), or null

For each step, use the full instruction text as extraction text and provide:
- step_number: the position of the step, starting at 1

CRITICAL RULES:
- DO NOT TRANSLATE - keep every name and instruction in the ORIGINAL LANGUAGE
- Join instruction text that was wrapped over several lines into one step
- Do not create steps from tips, serving suggestions or nutrition information
- Extract each ingredient ONLY ONCE
- If an ingredient line contains metric AND imperial measurements, extract ONLY
  the first (metric) measurement
- Use exact text from the document for extraction_text
"""
