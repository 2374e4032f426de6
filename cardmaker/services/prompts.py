SPANISH_CARD_PROMPT = """Make an Anki flashcard for the Spanish word "{term}".
If the word is an inflected or conjugated form, use the base form.

Format your answer as a JSON object with the following properties:
- "front"
  The English translation of the word.
  For nouns include the article "the".
- "back"
  The Spanish word and its European Spanish IPA pronunciation, including stress marks.
  For nouns that can be inflected based on gender, use a line break to show both forms, e.g. "el profesor [/pɾo.feˈsoɾ/]<br>la profesora [/pɾo.feˈso.ɾa/]"
- "extra"
  If the word has irregular inflections, conjugation or pronunciation, include a short explanation of the irregularities.
  Include two short sentences using the word, appropriate for an A1 Spanish student.
  These may use its inflected forms as natural.
  Include each sentence's English translation below it in italics (<i>...</i>).
  Separate each sentence by two blank lines.
- "tags"
  A list of categories for the word.
  - Include the part of speech.
  - For nouns, include the gender: "masculine", "feminine", or "neuter" if both genders have the same form.
  - For verbs, include "regular" or "irregular" as appropriate.

Respond with the JSON object only."""

ENGLISH_CARD_PROMPT = """Make an Anki flashcard for the English word or phrase "{term}".
The input may include a disambiguation or context in parentheses, e.g. "bank (financial)" or "run (verb)". Use it to pick the intended sense and do not repeat the parentheses on the card.

Format your answer as a JSON object with the following properties:
- "front"
  The word or phrase itself, in its base form, followed by its British English IPA pronunciation in brackets, e.g. "bank [/bæŋk/]".
- "back"
  A short, plain definition of the intended sense.
  If the word has a common synonym, add it on a new line using a line break (<br>).
- "extra"
  Only include this property if the word has irregular forms (plural, past tense, past participle) or a pronunciation that does not follow its spelling; give a one-line explanation.
  Omit the "extra" property entirely if the word is regular.
- "tags"
  A list of categories for the word.
  - Include the part of speech.
  - For verbs, include "regular" or "irregular" as appropriate.
  - Include a domain label if the sense belongs to one, e.g. "finance" or "medicine".

Respond with the JSON object only."""

NGRAMS_PROMPT = """List the most common idiomatic phrases (n-grams of two to five words) that a learner of European Spanish would meet containing the Spanish word "{term}" or one of its inflected forms.

Format your answer as a single JSON object:
- Each key is the English meaning of the phrase.
- Each value is the Spanish phrase, followed by a line break (<br>) and its European Spanish IPA pronunciation including stress marks, e.g. "echar de menos<br>/eˈtʃar de ˈmenos/".

Include between five and ten phrases, most frequent first.
Respond with the JSON object only."""

PROMPTS = {
    "spanish": SPANISH_CARD_PROMPT,
    "ngrams": NGRAMS_PROMPT,
    "english": ENGLISH_CARD_PROMPT,
}


def build_prompt(term: str, kind: str) -> str:
    """Fill the template for a workflow kind with the user's term."""
    return PROMPTS[kind].replace("{term}", term)
