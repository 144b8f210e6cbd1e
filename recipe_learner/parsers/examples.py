"""
Example recipes for few-shot prompting of the LangExtract model.
"""
from langextract.data import ExampleData, Extraction


RECIPE_EXAMPLES = [
    ExampleData(
        text="""
Linsen-Dal mit Spinat
Für 4 Personen
Aktiv: 20 Min.
Gesamt: 45 Min.

Zutaten
250 g rote Linsen
1 Zwiebel
2 Zehen Knoblauch
1 EL Currypulver
400 ml Kokosmilch
100 g Babyspinat

Zubereitung
1. Zwiebel und Knoblauch schälen, fein hacken und in einem Topf mit etwas Öl
glasig andünsten.
2. Currypulver und Linsen zugeben, mit Kokosmilch und 300 ml Wasser ablöschen
und 20 Minuten köcheln lassen.
3. Spinat unterheben, zusammenfallen lassen und mit Salz abschmecken.
""",
        extractions=[
            Extraction(
                extraction_class="title",
                extraction_text="Linsen-Dal mit Spinat"
            ),
            Extraction(
                extraction_class="servings",
                extraction_text="4"
            ),
            Extraction(
                extraction_class="prep_time",
                extraction_text="20"
            ),
            Extraction(
                extraction_class="cook_time",
                extraction_text="25"
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="250 g rote Linsen",
                attributes={"name": "rote Linsen", "quantity": "250", "unit": "g"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="1 Zwiebel",
                attributes={"name": "Zwiebel", "quantity": "1", "unit": None}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="2 Zehen Knoblauch",
                attributes={"name": "Knoblauch", "quantity": "2", "unit": "Zehen"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="1 EL Currypulver",
                attributes={"name": "Currypulver", "quantity": "1", "unit": "EL"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="400 ml Kokosmilch",
                attributes={"name": "Kokosmilch", "quantity": "400", "unit": "ml"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="100 g Babyspinat",
                attributes={"name": "Babyspinat", "quantity": "100", "unit": "g"}
            ),
            Extraction(
                extraction_class="step",
                extraction_text="Zwiebel und Knoblauch schälen, fein hacken und in einem Topf mit etwas Öl\nglasig andünsten.",
                attributes={"step_number": "1"}
            ),
            Extraction(
                extraction_class="step",
                extraction_text="Currypulver und Linsen zugeben, mit Kokosmilch und 300 ml Wasser ablöschen\nund 20 Minuten köcheln lassen.",
                attributes={"step_number": "2"}
            ),
            Extraction(
                extraction_class="step",
                extraction_text="Spinat unterheben, zusammenfallen lassen und mit Salz abschmecken.",
                attributes={"step_number": "3"}
            )
        ]
    ),

    ExampleData(
        text="""
BANANA BREAD
Serves 8 | Prep 15 minutes | Bake 60 minutes

Ingredients:
- 3 ripe bananas
- 1/3 cup melted butter
- ¾ cup sugar
- 1 tsp baking soda
- 1 1/2 cups all-purpose flour

Method
Preheat the oven to 175 °C and butter a loaf pan.
Mash the bananas in a bowl, then stir in the melted butter, sugar and baking soda.
Fold in the flour, pour the batter into the pan and bake for about one hour.
""",
        extractions=[
            Extraction(
                extraction_class="title",
                extraction_text="BANANA BREAD"
            ),
            Extraction(
                extraction_class="servings",
                extraction_text="8"
            ),
            Extraction(
                extraction_class="prep_time",
                extraction_text="15"
            ),
            Extraction(
                extraction_class="cook_time",
                extraction_text="60"
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="3 ripe bananas",
                attributes={"name": "ripe bananas", "quantity": "3", "unit": None}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="1/3 cup melted butter",
                attributes={"name": "melted butter", "quantity": "0.333", "unit": "cup"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="¾ cup sugar",
                attributes={"name": "sugar", "quantity": "0.75", "unit": "cup"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="1 tsp baking soda",
                attributes={"name": "baking soda", "quantity": "1", "unit": "tsp"}
            ),
            Extraction(
                extraction_class="ingredient",
                extraction_text="1 1/2 cups all-purpose flour",
                attributes={"name": "all-purpose flour", "quantity": "1.5", "unit": "cups"}
            ),
            Extraction(
                extraction_class="step",
                extraction_text="Preheat the oven to 175 °C and butter a loaf pan.",
                attributes={"step_number": "1"}
            ),
            Extraction(
                extraction_class="step",
                extraction_text="Mash the bananas in a bowl, then stir in the melted butter, sugar and baking soda.",
                attributes={"step_number": "2"}
            ),
            Extraction(
                extraction_class="step",
                extraction_text="Fold in the flour, pour the batter into the pan and bake for about one hour.",
                attributes={"step_number": "3"}
            )
        ]
    ),
]
