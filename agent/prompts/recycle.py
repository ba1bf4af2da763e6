"""
Recycling prompts: one source text rewritten for several platforms.

Every recycling call asks for JSON. Each system prompt embeds an example
payload for the shape the normalizer decodes first for that platform:
  email: subject / greeting / intro / body / callToAction / signature
  quotes: "content" is an array of quote strings
  twitter: "content" is an array of tweets
  others: "content" is a single string

Models still break the contract now and then; the normalizer copes.
"""

SYSTEM_JSON_RULES = """You must respond with ONLY valid JSON. No markdown fences, \
no explanation, no text before or after the JSON object."""

SYSTEM_DEFAULT = SYSTEM_JSON_RULES + """

You are an expert in digital marketing and content creation. You recycle existing \
content into formats optimized for each social platform, respecting the platform's \
character limits and tone.

Return ONLY this JSON structure:
{
  "content": "the full post text",
  "hashtags": ["hashtag1", "hashtag2"],
  "metadata": {}
}"""

SYSTEM_THREAD = SYSTEM_JSON_RULES + """

You are an expert in digital marketing who turns long-form content into threads.

Return ONLY this JSON structure, one array element per post:
{
  "content": ["Tweet one (1/5)", "Tweet two (2/5)", "..."],
  "hashtags": ["hashtag1", "hashtag2"],
  "metadata": {}
}"""

SYSTEM_QUOTES = SYSTEM_JSON_RULES + """

You extract memorable quotes from existing content.

Return ONLY this JSON structure:
{
  "content": ["quote one", "quote two", "quote three"],
  "hashtags": [],
  "metadata": {}
}"""

SYSTEM_EMAIL = SYSTEM_JSON_RULES + """

Generate email newsletter content and return ONLY this JSON structure:
{
  "subject": "clear subject line",
  "greeting": "Hi [name],",
  "intro": "personalized intro",
  "body": "main content, 2-3 paragraphs",
  "callToAction": "specific CTA",
  "signature": "Best regards, The [company] team"
}
MANDATORY: Return ONLY JSON, no markdown, no explanation."""

PLATFORM_GUIDANCE = {
    "linkedin": """- Professional, networking-oriented angle
- Include valuable insights
- Use appropriate business language
- End with a professional call-to-action""",

    "twitter": """- Write 5 connected tweets as a thread
- Each tweet stands on its own but links to the next
- Number them (1/5, 2/5, ...)
- Include engagement hooks
- At most 2-3 strategic hashtags per tweet; no generic or spammy hashtags
- Check that no tweet exceeds 280 characters including hashtags""",

    "instagram": """- Visual and emotional angle
- Use fitting emojis
- 8-10 hashtags: mix 3-4 popular, 3-4 niche and 2-3 branded
- Avoid generic hashtags such as #love or #happiness
- Call-to-action for engagement
- Check that the caption does not exceed 2200 characters including hashtags""",

    "facebook": """- Conversational, friendly tone
- Ask questions that spark engagement
- Content that invites comments
- Include personal touches""",

    "email": """- Professional B2B newsletter structure
- Subject: an engaging, relevant line
- Greeting always first, addressed to the reader by name
- Short personalized intro or hook (1-2 sentences)
- Body: 2-3 business-oriented paragraphs, clear and concise
- One clear, specific call-to-action
- Professional sign-off from the team
- No generic phrases or informal goodbyes
- Use ONLY the keys: subject, greeting, intro, body, callToAction, signature""",

    "quotes": """- Extract 3-5 inspiring quotes
- Each quote is memorable and 50-150 characters long
- Return them as an array
- Do not repeat phrases
- No text outside the JSON""",
}

USER_TEMPLATE = """Recycle the following content into a format optimized for {description}.

ORIGINAL CONTENT:
{content}

REQUIREMENTS:
- At most {max_characters} characters
- Tone: {tone} (platform register: {register})
- Platform: {platform}
- Include relevant hashtags (at most {hashtag_limit})
{industry_line}
PLATFORM GUIDANCE:
{guidance}"""

INDUSTRY_LINE = "- Industry: {industry}\n"
